from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from .config import ALL, METRIC_KEYS, MONTH_ABBREVS, RANGE_MONTHS, SPARKLINE_DAYS, TREND_COLORS
from .metrics import compute_metric, get_metric


@dataclass(frozen=True)
class TrendDetails:
    direction: str
    percentage: float | None


@dataclass(frozen=True)
class WindowComparison:
    metric: str
    current: float
    previous: float
    percent_change: float
    direction: str
    favorable: bool | None
    color: str


def _month_diff(later: pd.Timestamp, earlier: pd.Timestamp) -> int:
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def percent_change(current: float, previous: float) -> float:
    """Signed change from previous to current, in percent."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100.0


def trend_details(current: float, previous: float) -> TrendDetails:
    if previous == 0 and current > 0:
        direction = "increase"
    elif current > previous:
        direction = "increase"
    elif current < previous:
        direction = "decrease"
    else:
        direction = "steady"
    percentage = round((current - previous) / previous * 100.0, 1) if previous > 0 else None
    return TrendDetails(direction=direction, percentage=percentage)


def _trend_months(frame: pd.DataFrame, month: str) -> tuple[str | None, str | None]:
    if month == ALL:
        dated = frame.loc[frame["date"].notna()]
        if dated.empty:
            return None, None
        latest = pd.Timestamp(dated["date"].max())
        previous = latest - pd.DateOffset(months=1)
        return MONTH_ABBREVS[latest.month - 1], MONTH_ABBREVS[previous.month - 1]

    position = MONTH_ABBREVS.index(month)
    return month, (MONTH_ABBREVS[position - 1] if position > 0 else None)


def _month_slice(frame: pd.DataFrame, month: str | None) -> pd.DataFrame:
    if month is None:
        return frame.iloc[0:0]
    return frame.loc[frame["month"] == month]


def month_over_month(frame: pd.DataFrame, metric: str, month: str = ALL) -> dict[str, TrendDetails]:
    """Trend arrows for the KPI cards: a month against the calendar month before it.

    `frame` should already be filtered by client only. With month "All" the
    latest dated month is compared with its predecessor; January has no
    predecessor when picked explicitly, so its trend compares against zero.
    """
    get_metric(metric)
    current_month, previous_month = _trend_months(frame, month)
    current = _month_slice(frame, current_month)
    previous = _month_slice(frame, previous_month)

    return {
        metric: trend_details(compute_metric(current, metric), compute_metric(previous, metric)),
        "total_paid": trend_details(float(current["paid"].sum()), float(previous["paid"].sum())),
        "total_billed": trend_details(float(current["billed"].sum()), float(previous["billed"].sum())),
    }


def compare_recent_periods(monthly: pd.DataFrame, metric: str) -> dict[str, object]:
    """Trailing three non-zero months against the last one. Empty when no month has data."""
    spec = get_metric(metric)
    non_zero = monthly.loc[monthly["actual"] != 0]
    if non_zero.empty:
        return {}

    last3 = non_zero.tail(3)
    result: dict[str, object] = {
        "avg_last_3": round(float(last3["actual"].mean()), 2),
        "last_value": float(non_zero["actual"].iloc[-1]),
        "last_month": str(non_zero["month"].iloc[-1]),
    }
    if spec.default_target is not None:
        result["industry_standard"] = float(spec.default_target)
    return result


def recent_comparison_rows(comparison: dict[str, object]) -> pd.DataFrame:
    if not comparison:
        return pd.DataFrame(columns=["label", "value"])
    rows = [
        {"label": "Avg 3 Months", "value": comparison["avg_last_3"]},
        {"label": f"Last Month ({comparison['last_month']})", "value": comparison["last_value"]},
    ]
    if "industry_standard" in comparison:
        rows.append({"label": "Industry Standard", "value": comparison["industry_standard"]})
    return pd.DataFrame(rows)


def period_windows(today: pd.Timestamp, range_key: str) -> tuple[pd.Timestamp, pd.Timestamp]:
    """Start of the previous window and the cutoff between previous and current."""
    if range_key not in RANGE_MONTHS:
        raise ValueError(f"Unknown range {range_key!r}; expected one of {sorted(RANGE_MONTHS)}")
    months = RANGE_MONTHS[range_key]
    today = pd.Timestamp(today).normalize()
    cutoff = today - pd.DateOffset(months=months)
    previous_start = today - pd.DateOffset(months=2 * months)
    return previous_start, cutoff


def split_windows(
    frame: pd.DataFrame,
    range_key: str,
    today: pd.Timestamp,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Current window (after the cutoff) and the adjacent previous window of equal width."""
    previous_start, cutoff = period_windows(today, range_key)
    dates = frame["date"]
    current = frame.loc[dates.notna() & (dates > cutoff)]
    previous = frame.loc[dates.notna() & (dates > previous_start) & (dates <= cutoff)]
    return current, previous


def _compare(name: str, current: float, previous: float, higher_is_better: bool) -> WindowComparison:
    change = round(percent_change(current, previous), 2)
    if change > 0:
        direction = "increase"
    elif change < 0:
        direction = "decrease"
    else:
        direction = "steady"

    favorable: bool | None
    if previous == 0 or direction == "steady":
        favorable = None
        color = TREND_COLORS["neutral"]
    else:
        favorable = (direction == "increase") == higher_is_better
        color = TREND_COLORS["favorable"] if favorable else TREND_COLORS["unfavorable"]

    return WindowComparison(
        metric=name,
        current=round(current, 2),
        previous=round(previous, 2),
        percent_change=change,
        direction=direction,
        favorable=favorable,
        color=color,
    )


def compare_windows(frame: pd.DataFrame, metric: str, range_key: str, today: pd.Timestamp) -> WindowComparison:
    spec = get_metric(metric)
    current, previous = split_windows(frame, range_key, today)
    return _compare(
        metric,
        compute_metric(current, metric),
        compute_metric(previous, metric),
        higher_is_better=spec.higher_is_better,
    )


def compare_values(name: str, current: float, previous: float, higher_is_better: bool = True) -> WindowComparison:
    """Window comparison for values computed outside the metric table (lags, payments)."""
    return _compare(name, float(current), float(previous), higher_is_better=higher_is_better)


def kpi_comparison(frame: pd.DataFrame, range_key: str, today: pd.Timestamp) -> pd.DataFrame:
    current, previous = split_windows(frame, range_key, today)
    rows: list[dict[str, object]] = []
    for metric in METRIC_KEYS:
        result = _compare(
            metric,
            compute_metric(current, metric),
            compute_metric(previous, metric),
            higher_is_better=get_metric(metric).higher_is_better,
        )
        rows.append(
            {
                "metric": metric,
                "label": get_metric(metric).label,
                "current": result.current,
                "previous": result.previous,
                "percent_change": result.percent_change,
                "direction": result.direction,
                "favorable": result.favorable,
                "color": result.color,
            }
        )
    return pd.DataFrame(rows)


def daily_series(frame: pd.DataFrame, metric: str, days: int = SPARKLINE_DAYS) -> pd.DataFrame:
    """Per-day metric values over the last `days` distinct dates."""
    get_metric(metric)
    dated = frame.loc[frame["date"].notna()].sort_values("date", kind="stable")
    if dated.empty:
        return pd.DataFrame(columns=["date", "value"])

    recent_days = dated["date"].drop_duplicates().tail(days)
    window = dated.loc[dated["date"].isin(recent_days)]
    rows = [
        {"date": day, "value": round(compute_metric(bucket, metric), 2)}
        for day, bucket in window.groupby("date", sort=True)
    ]
    return pd.DataFrame(rows, columns=["date", "value"])


def months_covered(frame: pd.DataFrame) -> int:
    """Number of calendar months spanned by the dated rows, inclusive."""
    dates = frame["date"].dropna()
    if dates.empty:
        return 0
    return _month_diff(pd.Timestamp(dates.max()), pd.Timestamp(dates.min())) + 1
