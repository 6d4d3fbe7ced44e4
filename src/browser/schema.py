from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from .payload import PayloadKind, payload_kind

ColumnSchema = tuple[str, ...]

EMPTY_SCHEMA: ColumnSchema = ()


def flatten_paths(payload: Mapping[str, object], prefix: str = "") -> list[str]:
    """Dotted paths of every non-object leaf; arrays count as leaves.

    Walks depth first with an explicit stack, not recursion.
    """
    paths: list[str] = []
    stack: list[tuple[str, Iterator[tuple[str, object]]]] = [(prefix, iter(payload.items()))]
    while stack:
        current_prefix, items = stack[-1]
        entry = next(items, None)
        if entry is None:
            stack.pop()
            continue
        key, value = entry
        if payload_kind(value) is PayloadKind.OBJECT:
            stack.append((f"{current_prefix}{key}.", iter(value.items())))
        else:
            paths.append(f"{current_prefix}{key}")
    return paths


def aggregate(schema: ColumnSchema, payload: Mapping[str, object]) -> ColumnSchema:
    known = set(schema)
    added = [path for path in flatten_paths(payload) if path not in known]
    if not added:
        return schema
    # dict.fromkeys keeps first-seen order when one payload repeats a path
    return schema + tuple(dict.fromkeys(added))


def aggregate_batch(payloads: Iterable[Mapping[str, object] | None]) -> ColumnSchema:
    schema = EMPTY_SCHEMA
    for payload in payloads:
        if payload is None:
            continue
        schema = aggregate(schema, payload)
    return schema
