from __future__ import annotations

import math

from .metrics import get_metric


def _finite(value: object) -> float | None:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def format_percent(value: object) -> str:
    number = _finite(value)
    if number is None:
        return "0%"
    return f"{number:.2f}%"


def format_currency(value: object) -> str:
    number = _finite(value)
    if number is None:
        number = 0.0
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):,.2f}"


def format_count(value: object) -> str:
    number = _finite(value)
    if number is None:
        return "0"
    if number.is_integer():
        return f"{int(number):,}"
    return f"{number:,.2f}"


def format_days(value: object) -> str:
    number = _finite(value)
    if number is None:
        number = 0.0
    return f"{number:,.2f} days"


def format_metric(value: object, metric: str) -> str:
    unit = get_metric(metric).unit
    if unit == "percent":
        return format_percent(value)
    if unit == "days":
        return format_days(value)
    return format_count(value)


def format_change(percentage: float | None) -> str:
    """Arrow plus percent change; empty when there is no base period to compare with."""
    number = _finite(percentage)
    if number is None:
        return ""
    arrow = "▲" if number >= 0 else "▼"
    return f"{arrow} {abs(number):.2f}%"
