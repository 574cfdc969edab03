from concurrent.futures import ThreadPoolExecutor

import pandas as pd
import pytest

from rcm_dashboard.config import AGING_BUCKETS, METRIC_KEYS
from rcm_dashboard.filters import FilterState
from rcm_dashboard.views import ViewCache, build_metric_view, build_overview, table_rows

WINDOW_TODAY = pd.Timestamp("2024-04-20")


def test_metric_view_for_client_and_month(dataset):
    view = build_metric_view(dataset, FilterState(client="A", month="Jan"), "gcr")
    assert view.summary["gcr"] == 80.0
    assert view.monthly["month"].tolist() == ["Jan"]
    assert view.table["id"].tolist() == ["1", "2"]
    assert view.payers["payer"].tolist() == ["Medicare", "Aetna"]


def test_metric_view_trend_ignores_month_filter_for_history(dataset):
    view = build_metric_view(dataset, FilterState(client="B", month="Mar"), "gcr")
    # March (90%) against February (nothing paid) for client B.
    assert view.trends["gcr"].direction == "increase"
    assert view.summary["total_claims"] == 1


def test_billing_lag_table_lists_only_rows_with_lag(dataset):
    view = build_metric_view(dataset, FilterState(), "billing_lag")
    assert view.table["id"].tolist() == ["1", "2", "3"]
    assert view.table["lag_days"].tolist() == [5.0, 7.0, 12.0]


def test_billing_lag_cards_match_table(dataset):
    view = build_metric_view(dataset, FilterState(), "billing_lag")
    assert view.summary["total_claims"] == len(view.table) == 3
    assert view.summary["total_billed"] == 600.0
    assert view.summary["billing_lag"] == 8.0


def test_table_rows_passthrough(claims):
    assert table_rows(claims, "gcr") is claims


def test_overview_windows(dataset):
    overview = build_overview(dataset, WINDOW_TODAY, range_key="3m")
    assert overview.current["total_claims"] == 2
    assert overview.previous["total_claims"] == 2
    assert overview.comparison["metric"].tolist() == METRIC_KEYS
    assert overview.ar_aging["bucket"].tolist() == [label for label, _ in AGING_BUCKETS]
    assert set(overview.sparklines) == set(METRIC_KEYS)
    assert overview.trend["label"].tolist() == ["Feb 24", "Mar 24"]


def test_overview_side_cards(dataset):
    cards = build_overview(dataset, WINDOW_TODAY, range_key="3m").side_cards
    assert set(cards) == {"charge_lag", "billing_lag", "total_payments"}

    assert cards["charge_lag"].direction == "decrease"
    assert cards["charge_lag"].favorable is True

    assert cards["billing_lag"].current == 12.0
    assert cards["billing_lag"].previous == 6.0
    assert cards["billing_lag"].favorable is False

    assert cards["total_payments"].current == 360.0
    assert cards["total_payments"].previous == 240.0
    assert cards["total_payments"].favorable is True


def test_overview_with_unknown_range(dataset):
    with pytest.raises(ValueError):
        build_overview(dataset, WINDOW_TODAY, range_key="5y")


def test_cache_returns_the_same_view(dataset):
    cache = ViewCache(maxsize=4)
    first = cache.metric_view(dataset, FilterState(client="A"), "gcr")
    second = cache.metric_view(dataset, FilterState(client="A"), "gcr")
    assert first is second
    assert (cache.hits, cache.misses) == (1, 1)

    cache.metric_view(dataset, FilterState(client="B"), "gcr")
    assert cache.misses == 2


def test_cache_evicts_least_recently_used(dataset):
    cache = ViewCache(maxsize=2)
    cache.metric_view(dataset, FilterState(), "gcr")
    cache.metric_view(dataset, FilterState(), "ncr")
    cache.metric_view(dataset, FilterState(), "gcr")
    cache.metric_view(dataset, FilterState(), "fpr")
    assert len(cache) == 2

    cache.metric_view(dataset, FilterState(), "gcr")
    assert cache.hits == 2
    cache.metric_view(dataset, FilterState(), "ncr")
    assert cache.misses == 4


def test_cache_overview_key_includes_date(dataset):
    cache = ViewCache()
    cache.overview(dataset, WINDOW_TODAY)
    cache.overview(dataset, WINDOW_TODAY)
    cache.overview(dataset, WINDOW_TODAY + pd.Timedelta(days=1))
    assert (cache.hits, cache.misses) == (1, 2)
    cache.clear()
    assert len(cache) == 0


def test_cache_is_safe_across_threads(dataset):
    cache = ViewCache(maxsize=2)
    keys = [(n % 3,) for n in range(60)]

    def _lookup(key):
        return cache.get_or_build(key, lambda: key[0])

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(_lookup, keys))

    assert results == [key[0] for key in keys]
    assert cache.hits + cache.misses == len(keys)
    assert len(cache) <= 2


def test_cache_rejects_non_positive_size():
    with pytest.raises(ValueError):
        ViewCache(maxsize=0)
