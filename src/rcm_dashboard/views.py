from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import threading
from typing import Callable, TypeVar

import pandas as pd

from .analysis import (
    TrendDetails,
    WindowComparison,
    compare_recent_periods,
    compare_values,
    daily_series,
    kpi_comparison,
    month_over_month,
    split_windows,
)
from .config import DEFAULT_RANGE, METRIC_KEYS, SPARKLINE_DAYS, VIEW_CACHE_SIZE
from .data import ClaimDataset
from .filters import FilterState, apply_filters
from .metrics import (
    aggregate_by_month,
    aggregate_by_period,
    ar_aging_buckets,
    ar_days_trend,
    average_ar_days,
    billing_lag_days,
    charge_lag,
    compute_metric,
    get_metric,
    summary_metrics,
)
from .payers import group_by_payer

T = TypeVar("T")


@dataclass(frozen=True, eq=False)
class MetricView:
    metric: str
    state: FilterState
    summary: dict[str, float]
    trends: dict[str, TrendDetails]
    monthly: pd.DataFrame
    recent: dict[str, object]
    payers: pd.DataFrame
    table: pd.DataFrame


@dataclass(frozen=True, eq=False)
class OverviewView:
    range_key: str
    metric: str
    current: dict[str, float]
    previous: dict[str, float]
    comparison: pd.DataFrame
    trend: pd.DataFrame
    ar_aging: pd.DataFrame
    average_ar_days: int
    ar_days_trend: pd.DataFrame
    side_cards: dict[str, WindowComparison]
    sparklines: dict[str, pd.DataFrame]


def table_rows(frame: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Claim-level rows for the detail table. The billing lag view only lists rows with a lag."""
    if metric != "billing_lag":
        return frame
    with_lag = frame.assign(lag_days=billing_lag_days(frame))
    return with_lag.loc[with_lag["lag_days"].notna()]


def build_metric_view(dataset: ClaimDataset, state: FilterState, metric: str) -> MetricView:
    get_metric(metric)
    frame = dataset.frame
    client_frame = apply_filters(frame, state.client_only)
    filtered = apply_filters(frame, state)

    monthly = aggregate_by_month(client_frame, metric, month=state.month)
    table = table_rows(filtered, metric)
    return MetricView(
        metric=metric,
        state=state,
        # Cards describe the same rows the table lists.
        summary=summary_metrics(table),
        trends=month_over_month(client_frame, metric, month=state.month),
        monthly=monthly,
        recent=compare_recent_periods(monthly, metric),
        payers=group_by_payer(filtered, metric),
        table=table,
    )


def build_overview(
    dataset: ClaimDataset,
    today: pd.Timestamp,
    range_key: str = DEFAULT_RANGE,
    metric: str = "gcr",
    sparkline_days: int = SPARKLINE_DAYS,
) -> OverviewView:
    """KPI overview: current window against the previous window of the same width."""
    get_metric(metric)
    today = pd.Timestamp(today).normalize()
    current, previous = split_windows(dataset.frame, range_key, today)

    side_cards = {
        "charge_lag": compare_values(
            "charge_lag", charge_lag(current, today), charge_lag(previous, today), higher_is_better=False
        ),
        "billing_lag": compare_values(
            "billing_lag",
            compute_metric(current, "billing_lag"),
            compute_metric(previous, "billing_lag"),
            higher_is_better=False,
        ),
        "total_payments": compare_values(
            "total_payments", float(current["paid"].sum()), float(previous["paid"].sum())
        ),
    }

    return OverviewView(
        range_key=range_key,
        metric=metric,
        current=summary_metrics(current),
        previous=summary_metrics(previous),
        comparison=kpi_comparison(dataset.frame, range_key, today),
        trend=aggregate_by_period(current, metric),
        ar_aging=ar_aging_buckets(current),
        average_ar_days=average_ar_days(current),
        ar_days_trend=ar_days_trend(current),
        side_cards=side_cards,
        sparklines={key: daily_series(current, key, days=sparkline_days) for key in METRIC_KEYS},
    )


class ViewCache:
    """Bounded LRU of built views keyed on dataset version and selection.

    Page changes never touch the key, so paging through a table reuses the view.
    """

    def __init__(self, maxsize: int = VIEW_CACHE_SIZE) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[tuple, object] = OrderedDict()
        # One instance serves every Streamlit session thread.
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_build(self, key: tuple, builder: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                self.hits += 1
                self._entries.move_to_end(key)
                return self._entries[key]  # type: ignore[return-value]

            self.misses += 1
            value = builder()
            self._entries[key] = value
            while len(self._entries) > self.maxsize:
                self._entries.popitem(last=False)
            return value

    def metric_view(self, dataset: ClaimDataset, state: FilterState, metric: str) -> MetricView:
        key = ("metric", dataset.version, state, metric)
        return self.get_or_build(key, lambda: build_metric_view(dataset, state, metric))

    def overview(
        self,
        dataset: ClaimDataset,
        today: pd.Timestamp,
        range_key: str = DEFAULT_RANGE,
        metric: str = "gcr",
    ) -> OverviewView:
        today = pd.Timestamp(today).normalize()
        key = ("overview", dataset.version, range_key, metric, today)
        return self.get_or_build(key, lambda: build_overview(dataset, today, range_key=range_key, metric=metric))
