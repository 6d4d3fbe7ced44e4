from __future__ import annotations

from collections.abc import Iterable, Sequence

from .columns import top_level_segment
from .grid import GridSurface
from .models import ColumnDefinition, Row, VisibilityState
from .payload import is_present


def collect_non_empty_fields(rows: Iterable[Row]) -> set[str]:
    non_empty: set[str] = set()
    for row in rows:
        for name, value in row.fields.items():
            if name not in non_empty and is_present(value):
                non_empty.add(name)
    return non_empty


def recompute_visibility(
    visible_rows: Iterable[Row], columns: Sequence[ColumnDefinition]
) -> VisibilityState:
    """Show a dynamic column iff its top-level field is non-empty in some row.

    Nested paths share the visibility of their top-level ancestor. System
    columns are left out of the result and never change.
    """
    non_empty = collect_non_empty_fields(visible_rows)
    return {
        column.col_id: top_level_segment(column.field) in non_empty
        for column in columns
        if not column.fixed
    }


def apply_filter_visibility(grid: GridSurface) -> VisibilityState | None:
    if not grid.filter_model():
        return None
    state = recompute_visibility(grid.filtered_rows(), grid.columns())
    for col_id, visible in state.items():
        grid.set_column_visible(col_id, visible)
    return state
