from __future__ import annotations

from collections.abc import Mapping

from src.browser.grid import NUMBER_FILTER_OPERATORS, ColumnFilter

NUMBER_OPERATOR_LABELS: dict[str, str] = {
    "equals": "=",
    "lessThan": "<",
    "greaterThan": ">",
    "inRange": "between",
}


def _parse_number(raw: object) -> float | None:
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def build_text_filter(raw: object) -> ColumnFilter | None:
    text = str(raw or "").strip()
    if not text:
        return None
    return ColumnFilter("contains", text)


def build_number_filter(operator: str, raw: object, raw_to: object = None) -> ColumnFilter | None:
    if operator not in NUMBER_FILTER_OPERATORS:
        return None
    value = _parse_number(raw)
    if value is None:
        return None
    if operator == "inRange":
        upper = _parse_number(raw_to)
        if upper is None:
            return None
        return ColumnFilter(operator, value, upper)
    return ColumnFilter(operator, value)


def filters_changed(
    current: Mapping[str, ColumnFilter], requested: Mapping[str, ColumnFilter | None]
) -> bool:
    active = {field: spec for field, spec in requested.items() if spec is not None}
    return dict(current) != active
