from __future__ import annotations

import pandas as pd

from .metrics import billing_lag_days, get_metric

UNKNOWN_PAYER = "Unknown"

# Two measures per metric, shown side by side in the payer breakdown.
PAYER_MEASURES = {
    "gcr": ("payments", "denied"),
    "ncr": ("payments", "net_billed"),
    "denial_rate": ("payments", "denied"),
    "fpr": ("first_pass", "other"),
    "ccr": ("clean", "other"),
    "total_claims": ("claims", "billed"),
    "billing_lag": ("avg_lag", "claims"),
}


def _payer_rows(frame: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Per-row contribution to each payer measure."""
    out = pd.DataFrame(index=frame.index)
    out["payer"] = frame["payer"].where(frame["payer"] != "", UNKNOWN_PAYER)
    if metric in {"gcr", "denial_rate"}:
        out["payments"] = frame["paid"]
        out["denied"] = frame["denied_amount"]
    elif metric == "ncr":
        out["payments"] = frame["paid"]
        out["net_billed"] = frame["adjusted_billed"]
    elif metric == "fpr":
        if frame["total_claims"].sum() > 0:
            out["first_pass"] = frame["first_pass_claims"]
            out["other"] = frame["total_claims"] - frame["first_pass_claims"]
        else:
            paid = (frame["claim_status"] == "paid").astype(int)
            out["first_pass"] = paid
            out["other"] = 1 - paid
    elif metric == "ccr":
        clean = (frame["is_clean_claim"] == 1).astype(int)
        out["clean"] = clean
        out["other"] = 1 - clean
    elif metric == "total_claims":
        out["claims"] = 1
        out["billed"] = frame["billed"]
    elif metric == "billing_lag":
        out["avg_lag"] = billing_lag_days(frame)
        out["claims"] = 1
    return out


def group_by_payer(frame: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Payer breakdown for a metric, payers in first-seen order, blank payer as "Unknown"."""
    get_metric(metric)
    measures = list(PAYER_MEASURES[metric])
    columns = ["payer", *measures]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    rows = _payer_rows(frame, metric)
    if metric == "billing_lag":
        rows = rows.loc[rows["avg_lag"].notna()]
        if rows.empty:
            return pd.DataFrame(columns=columns)
        grouped = rows.groupby("payer", sort=False).agg(avg_lag=("avg_lag", "mean"), claims=("claims", "sum"))
        grouped["avg_lag"] = grouped["avg_lag"].round(2)
    else:
        grouped = rows.groupby("payer", sort=False)[measures].sum()

    return grouped.reset_index()[columns]
