from __future__ import annotations

import math
from datetime import datetime, timedelta, tzinfo

INVALID_DATE = "Invalid Date"


class InvalidTimestamp(ValueError):
    pass


def _to_millis(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidTimestamp(f"timestamp must be numeric, got {value!r}")
    if isinstance(value, (int, float)):
        raw = float(value)
    elif isinstance(value, str):
        try:
            raw = float(value.strip())
        except ValueError as exc:
            raise InvalidTimestamp(f"timestamp is not numeric: {value!r}") from exc
    else:
        raise InvalidTimestamp(f"unsupported timestamp type: {type(value).__name__}")
    if not math.isfinite(raw):
        raise InvalidTimestamp(f"timestamp is not finite: {value!r}")
    return math.trunc(raw)


def to_datetime(value: object, tz: tzinfo | None = None) -> datetime:
    """Interpret epoch milliseconds in ``tz`` (the local zone when omitted)."""
    millis = _to_millis(value)
    seconds, remainder = divmod(millis, 1000)
    try:
        return datetime.fromtimestamp(seconds, tz=tz) + timedelta(milliseconds=remainder)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestamp(f"timestamp out of range: {value!r}") from exc


def format_timestamp(value: object, tz: tzinfo | None = None, strict: bool = False) -> str:
    """Render epoch milliseconds as ``MM/DD/YYYY HH:mm:ss.mmm``.

    Unparseable input yields ``"Invalid Date"`` unless ``strict`` is set, in
    which case :class:`InvalidTimestamp` propagates.
    """
    try:
        moment = to_datetime(value, tz=tz)
    except InvalidTimestamp:
        if strict:
            raise
        return INVALID_DATE
    return (
        f"{moment.month:02d}/{moment.day:02d}/{moment.year:04d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}."
        f"{moment.microsecond // 1000:03d}"
    )
