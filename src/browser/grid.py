from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from .columns import resolve_field
from .models import ColumnDefinition, Row

TEXT_FILTER_OPERATORS: tuple[str, ...] = ("contains", "equals")
NUMBER_FILTER_OPERATORS: tuple[str, ...] = ("equals", "lessThan", "greaterThan", "inRange")


class GridSurface(Protocol):
    def columns(self) -> Sequence[ColumnDefinition]: ...

    def is_column_visible(self, col_id: str) -> bool: ...

    def set_column_visible(self, col_id: str, visible: bool) -> None: ...

    def filter_model(self) -> Mapping[str, "ColumnFilter"]: ...

    def filtered_rows(self) -> Iterable[Row]: ...


@dataclass(frozen=True)
class ColumnFilter:
    operator: str
    value: object
    value_to: object = None

    def __post_init__(self) -> None:
        if self.operator not in TEXT_FILTER_OPERATORS + NUMBER_FILTER_OPERATORS:
            raise ValueError(f"unsupported filter operator: {self.operator}")

    def matches(self, cell: object, filter_type: str) -> bool:
        if filter_type == "number":
            return self._matches_number(cell)
        return self._matches_text(cell)

    def _matches_text(self, cell: object) -> bool:
        if cell is None:
            return False
        text = str(cell).casefold()
        needle = str(self.value).casefold()
        if self.operator == "equals":
            return text == needle
        return needle in text

    def _matches_number(self, cell: object) -> bool:
        number = _as_number(cell)
        target = _as_number(self.value)
        if number is None or target is None:
            return False
        if self.operator == "equals":
            return number == target
        if self.operator == "lessThan":
            return number < target
        if self.operator == "greaterThan":
            return number > target
        if self.operator == "inRange":
            upper = _as_number(self.value_to)
            return upper is not None and target <= number <= upper
        return False


def _as_number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class TableGrid:
    """In-process grid model: column visibility plus per-column filters."""

    def __init__(self, rows: Sequence[Row], columns: Sequence[ColumnDefinition]) -> None:
        self._rows = list(rows)
        self._columns = list(columns)
        self._visible: dict[str, bool] = {column.col_id: True for column in self._columns}
        self._filters: dict[str, ColumnFilter] = {}

    def load(self, rows: Sequence[Row], columns: Sequence[ColumnDefinition]) -> None:
        self._rows = list(rows)
        self._columns = list(columns)
        # columns that survive a reload keep their visibility
        self._visible = {
            column.col_id: self._visible.get(column.col_id, True) for column in self._columns
        }
        known = {column.col_id for column in self._columns}
        self._filters = {name: spec for name, spec in self._filters.items() if name in known}

    def columns(self) -> Sequence[ColumnDefinition]:
        return list(self._columns)

    def is_column_visible(self, col_id: str) -> bool:
        return self._visible.get(col_id, False)

    def set_column_visible(self, col_id: str, visible: bool) -> None:
        if col_id in self._visible:
            self._visible[col_id] = visible

    def visible_columns(self) -> list[ColumnDefinition]:
        return [column for column in self._columns if self._visible.get(column.col_id, False)]

    def filter_model(self) -> Mapping[str, ColumnFilter]:
        return dict(self._filters)

    def set_filter(self, col_id: str, column_filter: ColumnFilter | None) -> None:
        if column_filter is None:
            self._filters.pop(col_id, None)
        else:
            self._filters[col_id] = column_filter

    def clear_filters(self) -> None:
        self._filters = {}

    def filtered_rows(self) -> Iterator[Row]:
        by_id = {column.col_id: column for column in self._columns}
        for row in self._rows:
            if all(
                spec.matches(resolve_field(row, by_id[name].field), by_id[name].filter_type)
                for name, spec in self._filters.items()
                if name in by_id
            ):
                yield row
