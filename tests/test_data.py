import pandas as pd
import pytest

from rcm_dashboard.data import ClaimDataset, load_claims, normalize_claims, parse_claims_csv


def test_parse_skips_empty_lines(claims):
    assert len(claims) == 5
    assert claims["id"].tolist() == ["1", "2", "3", "4", "5"]


def test_numeric_fields_default_to_zero(claims):
    row = claims.loc[claims["id"] == "5"].iloc[0]
    assert row["paid"] == 0.0
    assert row["billed"] == 50.0


def test_adjusted_billed_falls_back_to_billed_minus_adjustment(claims):
    assert claims["adjusted_billed"].tolist() == [90.0, 170.0, 300.0, 360.0, 50.0]


def test_unparsable_dates_become_missing(claims):
    row4 = claims.loc[claims["id"] == "4"].iloc[0]
    row5 = claims.loc[claims["id"] == "5"].iloc[0]
    assert pd.isna(row4["billing_date"])
    assert pd.isna(row5["date"])
    assert row5["month"] == ""


def test_month_abbreviation_from_primary_date(claims):
    assert claims["month"].tolist() == ["Jan", "Jan", "Feb", "Mar", ""]


def test_status_is_lowercased_and_denial_combines_status_and_flag(claims):
    assert claims["claim_status"].tolist() == ["paid", "paid", "denied", "paid", ""]
    assert claims["is_denied"].tolist() == [False, False, True, False, False]


def test_clean_claim_accepts_true_literal(claims):
    assert claims["is_clean_claim"].tolist() == [1, 1, 0, 1, 0]


def test_aging_uses_supplied_value_then_charge_date(claims):
    # 2024-01-03 -> 2024-06-15 is 164 days; row 3 supplies 40; row 5 has nothing.
    assert claims["aging"].tolist() == [164, 149, 40, 97, 0]


def test_service_date_falls_back_to_charge_date(claims):
    assert claims["service_date"].equals(claims["charge_date"])


def test_per_row_targets_are_read(claims):
    assert claims["target_gcr"].tolist() == [95.0, 0.0, 96.0, 0.0, 0.0]
    assert claims["baseline_gcr"].tolist() == [80.0, 0.0, 0.0, 0.0, 0.0]
    assert (claims["target_fpr"] == 0).all()


def test_missing_id_gets_row_label():
    frame = normalize_claims(pd.DataFrame({"id": ["", "7"], "billed": ["1", "2"]}), today="2024-01-01")
    assert frame["id"].tolist() == ["row-0", "7"]


def test_native_booleans_are_accepted():
    frame = normalize_claims(pd.DataFrame({"is_clean_claim": [True, False], "denied": [True, False]}))
    assert frame["is_clean_claim"].tolist() == [1, 0]
    assert frame["is_denied"].tolist() == [True, False]


def test_empty_text_gives_empty_dataset():
    dataset = parse_claims_csv("   \n")
    assert dataset.is_empty
    assert "billed" in dataset.frame.columns
    assert "month" in dataset.frame.columns


def test_header_only_gives_empty_dataset():
    dataset = parse_claims_csv("id,billed,paid\n")
    assert dataset.is_empty


def test_ragged_row_is_skipped_and_other_rows_kept(today):
    text = "id,billed,paid\n1,10,5\n2,20,10,EXTRA\n3,30,15\n"
    with pytest.warns(UserWarning, match="Skipped 1 malformed row"):
        dataset = parse_claims_csv(text, source="ragged.csv", today=today)
    assert dataset.frame["id"].tolist() == ["1", "3"]
    assert dataset.frame["billed"].tolist() == [10.0, 30.0]


def test_unparsable_csv_gives_empty_dataset_with_warning(monkeypatch, today):
    def _raise(*args, **kwargs):
        raise pd.errors.ParserError("Error tokenizing data")

    monkeypatch.setattr(pd, "read_csv", _raise)
    with pytest.warns(UserWarning, match="could not be parsed"):
        dataset = parse_claims_csv("id,billed\n1,10\n", source="broken.csv", today=today)
    assert dataset.is_empty
    assert dataset.source == "broken.csv"


def test_date_columns_share_one_dtype(claims):
    dtypes = {str(claims[col].dtype) for col in ["date", "charge_date", "billing_date", "service_date"]}
    assert dtypes == {"datetime64[ns]"}


def test_version_is_stable_for_same_text(today):
    a = parse_claims_csv("id,billed\n1,10\n", today=today)
    b = parse_claims_csv("id,billed\n1,10\n", today=today)
    c = parse_claims_csv("id,billed\n1,11\n", today=today)
    assert a.version == b.version
    assert a.version != c.version


def test_load_claims_reads_file(claims_file, today):
    dataset = load_claims(claims_file, today=today)
    assert len(dataset.frame) == 5
    assert dataset.source == str(claims_file)


def test_load_claims_missing_file_is_empty_with_warning(tmp_path):
    with pytest.warns(UserWarning, match="could not be read"):
        dataset = load_claims(tmp_path / "missing.csv")
    assert isinstance(dataset, ClaimDataset)
    assert dataset.is_empty
