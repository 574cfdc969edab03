import pytest

from rcm_dashboard.payers import PAYER_MEASURES, UNKNOWN_PAYER, group_by_payer


def test_collection_rate_breakdown(claims):
    table = group_by_payer(claims, "gcr")
    assert table.columns.tolist() == ["payer", "payments", "denied"]
    assert table["payer"].tolist() == ["Medicare", "Aetna", UNKNOWN_PAYER]
    assert table["payments"].tolist() == [90.0, 150.0, 360.0]
    assert table["denied"].tolist() == [300.0, 50.0, 0.0]


def test_net_collection_breakdown(claims):
    table = group_by_payer(claims, "ncr").set_index("payer")
    assert table.loc["Aetna", "net_billed"] == 220.0
    assert table.loc[UNKNOWN_PAYER, "payments"] == 360.0


def test_first_pass_breakdown_uses_reported_counts(claims):
    table = group_by_payer(claims, "fpr").set_index("payer")
    assert table.loc["Medicare"].tolist() == [11.0, 4.0]
    assert table.loc["Aetna"].tolist() == [15.0, 5.0]


def test_clean_claim_breakdown(claims):
    table = group_by_payer(claims, "ccr").set_index("payer")
    assert table.loc["Medicare"].tolist() == [1, 1]
    assert table.loc[UNKNOWN_PAYER].tolist() == [1, 0]


def test_billing_lag_breakdown_skips_rows_without_lag(claims):
    table = group_by_payer(claims, "billing_lag")
    assert table["payer"].tolist() == ["Medicare", "Aetna"]
    assert table["avg_lag"].tolist() == [8.5, 7.0]
    assert table["claims"].tolist() == [2, 1]


def test_claim_count_breakdown_sums_to_total(claims):
    table = group_by_payer(claims, "total_claims")
    assert table["claims"].sum() == len(claims)
    assert table["billed"].sum() == pytest.approx(claims["billed"].sum())


@pytest.mark.parametrize("metric", sorted(PAYER_MEASURES))
def test_empty_frame_gives_empty_breakdown(claims, metric):
    table = group_by_payer(claims.iloc[0:0], metric)
    assert table.empty
    assert table.columns.tolist() == ["payer", *PAYER_MEASURES[metric]]


def test_unknown_metric(claims):
    with pytest.raises(KeyError):
        group_by_payer(claims, "days_in_ar")
