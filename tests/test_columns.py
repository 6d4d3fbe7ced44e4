from datetime import timezone
from functools import partial
import importlib
import json

columns = importlib.import_module("src.browser.columns")
models = importlib.import_module("src.browser.models")
projection = importlib.import_module("src.browser.projection")
timestamps = importlib.import_module("src.browser.timestamps")


def _row(payload: str, key: str = "k-1"):
    record = models.RawRecord.from_mapping(
        {
            "message": {"timestamp": 0, "offset": "1"},
            "value": payload,
            "key": key,
            "topic": "orders",
            "partition": 0,
        }
    )
    row, _ = projection.project(record)
    return row


def test_cross_topic_columns_include_topic_and_partition_before_dynamic_columns():
    defs = columns.build_column_definitions(models.BrowseContext(), ("a.b", "d"))

    assert [c.header_name for c in defs] == [
        "Timestamp",
        "Offset",
        "Type",
        "Topic",
        "Partition",
        "a.b",
        "d",
        "Key",
        "Value",
    ]


def test_single_topic_columns_omit_topic_and_partition():
    defs = columns.build_column_definitions(models.BrowseContext(topic="orders", partition="0"), ("d",))

    assert [c.field for c in defs] == ["timestamp", "offset", "type", "d", "key", "value"]


def test_column_definitions_mark_system_columns_and_offset_filter():
    defs = {c.field: c for c in columns.build_column_definitions(models.BrowseContext(), ("d",))}

    assert defs["offset"].filter_type == "number"
    assert defs["timestamp"].value_formatter is not None
    assert all(defs[name].fixed for name in ("timestamp", "offset", "type", "topic", "partition", "key", "value"))
    assert defs["d"].fixed is False


def test_top_level_segment():
    assert columns.top_level_segment("a.b.c") == "a"
    assert columns.top_level_segment("plain") == "plain"
    assert columns.top_level_segment(".hidden") == ".hidden"


def test_resolve_field_descends_nested_payload():
    row = _row('{"a": {"b": {"c": 3}}, "flat.key": 1}')

    assert columns.resolve_field(row, "a.b.c") == 3
    assert columns.resolve_field(row, "flat.key") == 1
    assert columns.resolve_field(row, "a.missing") is None
    assert columns.resolve_field(row, "offset") == 1


def test_display_records_formats_timestamp_and_serializes_containers():
    row = _row('{"tags": ["x", "y"], "n": 2}')
    defs = columns.build_column_definitions(
        models.BrowseContext(topic="orders"),
        ("tags", "n"),
        formatter=partial(timestamps.format_timestamp, tz=timezone.utc),
    )

    records = columns.display_records([row], defs)

    assert records[0]["_sys:timestamp"] == "01/01/1970 00:00:00.000"
    assert records[0]["tags"] == '["x", "y"]'
    assert records[0]["n"] == 2
    assert records[0]["_sys:value"] == '{"tags": ["x", "y"], "n": 2}'


def test_matches_search_checks_payload_text_and_key():
    row = _row('{"city": "Berlin"}', key="user-7")

    assert columns.matches_search(row, "")
    assert columns.matches_search(row, "Berlin")
    assert columns.matches_search(row, "user-7")
    assert not columns.matches_search(row, "berlin")
    assert columns.matches_search(row, "berlin", case_sensitive=False)
    assert not columns.matches_search(row, "Paris")


def test_export_raw_projections_is_json_array():
    exported = json.loads(columns.export_raw_projections([_row('{"a": 1}'), _row("text")]))

    assert exported[0]["Value"] == {"a": 1}
    assert exported[1]["Value"] == "text"
    assert exported[0]["Key"] == "k-1"
