from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Literal, Union

Number = Union[int, float]
FilterType = Literal["text", "number"]
ValueFormatter = Callable[[object], str]
VisibilityState = dict[str, bool]
SYSTEM_COLUMN_PREFIX = "_sys:"


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


def parse_offset(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_timestamp(value: object) -> Number | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        try:
            return int(cleaned)
        except ValueError:
            pass
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


@dataclass(frozen=True)
class RawRecord:
    timestamp: object
    offset: object
    payload: str
    key: str
    topic: str
    partition: str
    schema_type: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "RawRecord":
        message = data.get("message")
        if not isinstance(message, Mapping):
            message = {}
        schema_type = data.get("schemaType")
        schema_name = schema_type.get("name") if isinstance(schema_type, Mapping) else None
        payload = data.get("value", data.get("payload"))
        key = data.get("key", data.get("keyPayload"))
        return cls(
            timestamp=message.get("timestamp", data.get("timestampMillis")),
            offset=message.get("offset", data.get("offset")),
            payload=_text(payload),
            key=_text(key),
            topic=_text(data.get("topic")),
            partition=_text(data.get("partition")),
            schema_type=None if schema_name is None else str(schema_name),
        )


@dataclass(frozen=True)
class FetchResult:
    messages: tuple[RawRecord, ...] = ()
    error: str | None = None
    has_timeout: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "FetchResult":
        error = data.get("error")
        if error:
            return cls(error=str(error), has_timeout=bool(data.get("hasTimeout")))
        raw_messages = data.get("messages") or []
        if not isinstance(raw_messages, list):
            return cls(error="messages must be a list")
        messages = tuple(
            RawRecord.from_mapping(item) for item in raw_messages if isinstance(item, Mapping)
        )
        return cls(messages=messages, has_timeout=bool(data.get("hasTimeout")))


@dataclass(frozen=True)
class BrowseContext:
    topic: str | None = None
    partition: str | None = None

    @property
    def cross_topic(self) -> bool:
        return self.topic is None

    @property
    def title(self) -> str:
        if self.cross_topic:
            return "Cross-Topic search"
        return f"Messages for topic: {self.topic}"


@dataclass(frozen=True)
class FixedFields:
    timestamp: Number | None
    offset: int | None
    value: str
    type: str
    key: str
    topic: str
    partition: str

    def as_dict(self) -> dict[str, object]:
        return {
            "timestamp": self.timestamp,
            "offset": self.offset,
            "value": self.value,
            "type": self.type,
            "key": self.key,
            "topic": self.topic,
            "partition": self.partition,
        }


FIXED_FIELD_NAMES: tuple[str, ...] = (
    "timestamp",
    "offset",
    "value",
    "type",
    "key",
    "topic",
    "partition",
)


def merge_fields(fixed: FixedFields, dynamic: Mapping[str, object]) -> dict[str, object]:
    """Overlay payload fields on the system fields; payload keys win."""
    merged = fixed.as_dict()
    for name, value in dynamic.items():
        merged[name] = value
    return merged


@dataclass(frozen=True)
class Row:
    fixed: FixedFields
    dynamic: Mapping[str, object]
    raw_projection: Mapping[str, object]
    fields: Mapping[str, object] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", merge_fields(self.fixed, self.dynamic))

    def get(self, name: str, default: object = None) -> object:
        return self.fields.get(name, default)


@dataclass(frozen=True)
class ColumnDefinition:
    header_name: str
    field: str
    value_formatter: ValueFormatter | None = None
    filter_type: FilterType = "text"
    fixed: bool = False

    @property
    def col_id(self) -> str:
        # system ids are namespaced apart from payload paths
        if self.fixed:
            return f"{SYSTEM_COLUMN_PREFIX}{self.field}"
        return self.field
