from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np
import pandas as pd

from .config import AGING_BUCKETS, ALL, METRIC_LABELS, METRIC_TARGETS, MONTH_ABBREVS

MONTHLY_COLUMNS = ["month", "billed", "paid", "adjustment", "count", "actual", "target", "baseline"]
PERIOD_COLUMNS = ["period", "label", "count", "actual", "target", "baseline"]


def safe_pct(numerator: float, denominator: float) -> float:
    """numerator / denominator * 100, or 0 when the denominator is not positive."""
    num = float(numerator)
    den = float(denominator)
    if not np.isfinite(num) or not np.isfinite(den) or den <= 0:
        return 0.0
    return num / den * 100.0


def billing_lag_days(frame: pd.DataFrame) -> pd.Series:
    """Days from service to billing; NaN where either date is missing."""
    return (frame["billing_date"] - frame["service_date"]).dt.days.astype(float)


def _gross_collection_rate(frame: pd.DataFrame) -> float:
    return safe_pct(frame["paid"].sum(), frame["billed"].sum())


def _net_collection_rate(frame: pd.DataFrame) -> float:
    return safe_pct(frame["paid"].sum(), frame["adjusted_billed"].sum())


def _denial_rate(frame: pd.DataFrame) -> float:
    return safe_pct(frame["is_denied"].sum(), len(frame))


def _first_pass_rate(frame: pd.DataFrame) -> float:
    reported = frame["total_claims"].sum()
    if reported > 0:
        return safe_pct(frame["first_pass_claims"].sum(), reported)
    return safe_pct((frame["claim_status"] == "paid").sum(), len(frame))


def _clean_claim_rate(frame: pd.DataFrame) -> float:
    return safe_pct((frame["is_clean_claim"] == 1).sum(), len(frame))


def _total_claims(frame: pd.DataFrame) -> float:
    return float(len(frame))


def _billing_lag(frame: pd.DataFrame) -> float:
    lags = billing_lag_days(frame).dropna()
    if lags.empty:
        return 0.0
    return float(lags.mean())


@dataclass(frozen=True)
class MetricSpec:
    key: str
    compute: Callable[[pd.DataFrame], float]
    unit: str
    higher_is_better: bool = True

    @property
    def label(self) -> str:
        return METRIC_LABELS[self.key]

    @property
    def default_target(self) -> float | None:
        return METRIC_TARGETS.get(self.key)


METRICS: dict[str, MetricSpec] = {
    "gcr": MetricSpec("gcr", _gross_collection_rate, unit="percent"),
    "ncr": MetricSpec("ncr", _net_collection_rate, unit="percent"),
    "denial_rate": MetricSpec("denial_rate", _denial_rate, unit="percent", higher_is_better=False),
    "fpr": MetricSpec("fpr", _first_pass_rate, unit="percent"),
    "ccr": MetricSpec("ccr", _clean_claim_rate, unit="percent"),
    "total_claims": MetricSpec("total_claims", _total_claims, unit="count"),
    "billing_lag": MetricSpec("billing_lag", _billing_lag, unit="days", higher_is_better=False),
}


def get_metric(metric: str) -> MetricSpec:
    try:
        return METRICS[metric]
    except KeyError:
        raise KeyError(f"Unknown metric {metric!r}; expected one of {sorted(METRICS)}") from None


def compute_metric(frame: pd.DataFrame, metric: str) -> float:
    value = float(get_metric(metric).compute(frame))
    return value if np.isfinite(value) else 0.0


def summary_metrics(frame: pd.DataFrame) -> dict[str, float]:
    """Scalar totals and every KPI for the KPI cards."""
    summary: dict[str, float] = {
        "total_billed": round(float(frame["billed"].sum()), 2),
        "total_paid": round(float(frame["paid"].sum()), 2),
        "total_adjustment": round(float(frame["adjustment"].sum()), 2),
        "total_adjusted_billed": round(float(frame["adjusted_billed"].sum()), 2),
        "total_denied_amount": round(float(frame["denied_amount"].sum()), 2),
        "total_claims": int(len(frame)),
        "denied_claims": int(frame["is_denied"].sum()),
        "clean_claims": int((frame["is_clean_claim"] == 1).sum()),
        "reported_claims": round(float(frame["total_claims"].sum()), 2),
        "first_pass_claims": round(float(frame["first_pass_claims"].sum()), 2),
    }
    for key in METRICS:
        summary.setdefault(key, round(compute_metric(frame, key), 2))
    return summary


def _bucket_reference(bucket: pd.DataFrame, column: str, fallback: float) -> float:
    """First non-zero per-row value of a target/baseline column."""
    if bucket.empty or column not in bucket.columns:
        return fallback
    values = bucket[column]
    values = values[values != 0]
    if values.empty:
        return fallback
    return float(values.iloc[0])


def aggregate_by_month(frame: pd.DataFrame, metric: str, month: str = ALL) -> pd.DataFrame:
    """Calendar-month buckets (Jan..Dec, or just `month`) of the metric. Undated rows are skipped."""
    spec = get_metric(metric)
    if month != ALL and month not in MONTH_ABBREVS:
        raise ValueError(f"Unknown month abbreviation: {month!r}")

    dated = frame.loc[frame["date"].notna()]
    default_target = spec.default_target or 0.0
    months = MONTH_ABBREVS if month == ALL else [month]

    rows: list[dict[str, object]] = []
    for name in months:
        bucket = dated.loc[dated["month"] == name]
        rows.append(
            {
                "month": name,
                "billed": float(bucket["billed"].sum()),
                "paid": float(bucket["paid"].sum()),
                "adjustment": float(bucket["adjustment"].sum()),
                "count": int(len(bucket)),
                "actual": round(compute_metric(bucket, metric), 2) if not bucket.empty else 0.0,
                "target": _bucket_reference(bucket, f"target_{metric}", default_target),
                "baseline": _bucket_reference(bucket, f"baseline_{metric}", 0.0),
            }
        )
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def period_label(start: pd.Timestamp) -> str:
    return f"{MONTH_ABBREVS[start.month - 1]} {start.strftime('%y')}"


def aggregate_by_period(frame: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Month-year buckets in chronological order, for multi-year trend charts."""
    spec = get_metric(metric)
    dated = frame.loc[frame["date"].notna()]
    if dated.empty:
        return pd.DataFrame(columns=PERIOD_COLUMNS)

    default_target = spec.default_target or 0.0
    rows: list[dict[str, object]] = []
    for period, bucket in dated.groupby(dated["date"].dt.to_period("M"), sort=True):
        start = period.to_timestamp()
        rows.append(
            {
                "period": start,
                "label": period_label(start),
                "count": int(len(bucket)),
                "actual": round(compute_metric(bucket, metric), 2),
                "target": _bucket_reference(bucket, f"target_{metric}", default_target),
                "baseline": _bucket_reference(bucket, f"baseline_{metric}", 0.0),
            }
        )
    return pd.DataFrame(rows, columns=PERIOD_COLUMNS)


def charge_lag(frame: pd.DataFrame, today: pd.Timestamp) -> int:
    """Average days since the charge date, rounded."""
    days = (pd.Timestamp(today).normalize() - frame["charge_date"]).dt.days.dropna()
    if days.empty:
        return 0
    return int(round(float(days.mean())))


def average_ar_days(frame: pd.DataFrame) -> int:
    if frame.empty:
        return 0
    return int(round(float(frame["aging"].mean())))


def ar_aging_buckets(frame: pd.DataFrame) -> pd.DataFrame:
    labels = [label for label, _ in AGING_BUCKETS]
    edges = [-np.inf] + [np.inf if upper is None else float(upper) for _, upper in AGING_BUCKETS]
    binned = pd.cut(frame["aging"].astype(float), bins=edges, labels=labels, right=True)
    counts = binned.value_counts().reindex(labels, fill_value=0)
    return pd.DataFrame({"bucket": labels, "count": [int(counts[label]) for label in labels]})


def ar_days_trend(frame: pd.DataFrame) -> pd.DataFrame:
    dated = frame.loc[frame["date"].notna()]
    if dated.empty:
        return pd.DataFrame(columns=["period", "label", "value"])

    rows: list[dict[str, object]] = []
    for period, bucket in dated.groupby(dated["date"].dt.to_period("M"), sort=True):
        start = period.to_timestamp()
        rows.append(
            {
                "period": start,
                "label": period_label(start),
                "value": int(round(float(bucket["aging"].mean()))),
            }
        )
    return pd.DataFrame(rows)
