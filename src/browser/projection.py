from __future__ import annotations

from collections.abc import Iterable

from .models import FixedFields, RawRecord, Row, parse_offset, parse_timestamp
from .payload import PayloadKind, decode_payload, payload_kind

RAW_PROJECTION_KEYS: dict[str, str] = {
    "timestamp": "Timestamp",
    "offset": "Offset",
    "value": "Value",
    "type": "Type",
    "key": "Key",
    "topic": "Topic",
    "partition": "Partition",
}


def build_fixed_fields(record: RawRecord) -> FixedFields:
    return FixedFields(
        timestamp=parse_timestamp(record.timestamp),
        offset=parse_offset(record.offset),
        value=record.payload,
        type=record.schema_type or "",
        key=record.key,
        topic=record.topic,
        partition=record.partition,
    )


def build_raw_projection(fixed: FixedFields, value: object) -> dict[str, object]:
    projection: dict[str, object] = {}
    for name, current in fixed.as_dict().items():
        projection[RAW_PROJECTION_KEYS[name]] = value if name == "value" else current
    return projection


def project(record: RawRecord) -> tuple[Row, dict[str, object] | None]:
    """Normalize one record into a row.

    The parsed payload (or ``None`` when the payload is not a JSON object) is
    returned alongside the row so callers can aggregate columns without
    decoding the payload again. JSON that is not an object keeps its decoded
    value in the raw projection but adds no fields.
    """
    fixed = build_fixed_fields(record)
    decoded_ok, decoded = decode_payload(record.payload)
    parsed = decoded if decoded_ok and payload_kind(decoded) is PayloadKind.OBJECT else None
    dynamic: dict[str, object] = dict(parsed) if parsed is not None else {}
    value: object = decoded if decoded_ok else record.payload
    row = Row(fixed=fixed, dynamic=dynamic, raw_projection=build_raw_projection(fixed, value))
    return row, parsed


def project_batch(records: Iterable[RawRecord]) -> list[tuple[Row, dict[str, object] | None]]:
    return [project(record) for record in records]
