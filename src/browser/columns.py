from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from functools import partial

from .models import BrowseContext, ColumnDefinition, Row, ValueFormatter
from .schema import ColumnSchema
from .timestamps import format_timestamp


def timestamp_formatter(strict: bool = False) -> ValueFormatter:
    return partial(format_timestamp, strict=strict)


def build_column_definitions(
    context: BrowseContext,
    schema: ColumnSchema,
    formatter: ValueFormatter | None = None,
) -> list[ColumnDefinition]:
    columns = [
        ColumnDefinition(
            "Timestamp", "timestamp", value_formatter=formatter or timestamp_formatter(), fixed=True
        ),
        ColumnDefinition("Offset", "offset", filter_type="number", fixed=True),
        ColumnDefinition("Type", "type", fixed=True),
    ]
    if context.cross_topic:
        columns.append(ColumnDefinition("Topic", "topic", fixed=True))
        columns.append(ColumnDefinition("Partition", "partition", fixed=True))
    columns.extend(ColumnDefinition(path, path) for path in schema)
    columns.append(ColumnDefinition("Key", "key", fixed=True))
    columns.append(ColumnDefinition("Value", "value", fixed=True))
    return columns


def top_level_segment(path: str) -> str:
    # a leading dot is part of the key, not a nesting separator
    index = path.find(".")
    if index >= 1:
        return path[:index]
    return path


def resolve_field(row: Row, path: str) -> object:
    if path in row.fields:
        return row.fields[path]
    current: object = row.fields
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return None
        current = current[segment]
    return current


def _cell(value: object) -> object:
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    return value


def display_records(
    rows: Iterable[Row], columns: Sequence[ColumnDefinition]
) -> list[dict[str, object]]:
    records: list[dict[str, object]] = []
    for row in rows:
        record: dict[str, object] = {}
        for column in columns:
            value = resolve_field(row, column.field)
            if column.value_formatter is not None:
                record[column.col_id] = column.value_formatter(value)
            else:
                record[column.col_id] = _cell(value)
        records.append(record)
    return records


def matches_search(row: Row, text: str, case_sensitive: bool = True) -> bool:
    if not text:
        return True
    haystacks = (row.fixed.value, row.fixed.key)
    if case_sensitive:
        return any(text in haystack for haystack in haystacks)
    needle = text.casefold()
    return any(needle in haystack.casefold() for haystack in haystacks)


def export_raw_projections(rows: Iterable[Row]) -> str:
    return json.dumps([dict(row.raw_projection) for row in rows], ensure_ascii=False, indent=2)
