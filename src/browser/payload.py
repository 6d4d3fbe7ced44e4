from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from enum import Enum

LOGGER = logging.getLogger(__name__)

MAX_PAYLOAD_DEPTH = 100


class PayloadKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def payload_kind(value: object) -> PayloadKind:
    if value is None:
        return PayloadKind.NULL
    if isinstance(value, bool):
        return PayloadKind.BOOL
    if isinstance(value, (int, float)):
        return PayloadKind.NUMBER
    if isinstance(value, str):
        return PayloadKind.STRING
    if isinstance(value, (list, tuple)):
        return PayloadKind.ARRAY
    if isinstance(value, Mapping):
        return PayloadKind.OBJECT
    raise TypeError(f"unsupported payload value: {type(value).__name__}")


def nesting_depth(value: object) -> int:
    """Deepest container nesting of a decoded value, walked without recursion."""
    deepest = 0
    stack: list[tuple[object, int]] = [(value, 0)]
    while stack:
        current, depth = stack.pop()
        if isinstance(current, Mapping):
            children = list(current.values())
        elif isinstance(current, (list, tuple)):
            children = list(current)
        else:
            continue
        depth += 1
        deepest = max(deepest, depth)
        stack.extend((child, depth) for child in children)
    return deepest


def decode_payload(raw: str) -> tuple[bool, object]:
    """Decode a record payload as JSON.

    Returns ``(False, None)`` when the payload is not JSON or nests deeper
    than ``MAX_PAYLOAD_DEPTH``; the row then falls back to its raw text.
    """
    try:
        decoded = json.loads(raw)
    except (ValueError, TypeError, RecursionError) as exc:
        LOGGER.warning("row value is not json encoded, error: %s, value: %.200s", exc, raw)
        return False, None
    if nesting_depth(decoded) > MAX_PAYLOAD_DEPTH:
        LOGGER.warning(
            "row value nests deeper than %s levels, value: %.200s", MAX_PAYLOAD_DEPTH, raw
        )
        return False, None
    return True, decoded


def is_present(value: object) -> bool:
    """Truthiness used for column emptiness: empty containers still count."""
    kind = payload_kind(value)
    if kind is PayloadKind.NULL:
        return False
    if kind is PayloadKind.BOOL:
        return bool(value)
    if kind is PayloadKind.NUMBER:
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if kind is PayloadKind.STRING:
        return value != ""
    return True
