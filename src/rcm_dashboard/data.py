from __future__ import annotations

from dataclasses import dataclass
from datetime import date
import hashlib
from io import StringIO
from pathlib import Path
import warnings

import numpy as np
import pandas as pd

from .config import METRIC_SOURCE_SUFFIX, MONTH_ABBREVS

TRUE_STRINGS = {"true", "1", "1.0", "yes", "y", "t"}

AMOUNT_COLUMNS = ["billed", "paid", "adjustment", "adjusted_billed", "denied_amount"]
DATE_COLUMNS = ["date", "charge_date", "billing_date", "service_date"]
TEXT_COLUMNS = ["client", "payer", "reason"]
DATE_DTYPE = "datetime64[ns]"


@dataclass(frozen=True, eq=False)
class ClaimDataset:
    """Normalized claims table plus a fingerprint of the text it came from."""

    frame: pd.DataFrame
    version: str
    source: str = ""

    @classmethod
    def empty(cls, source: str = "") -> "ClaimDataset":
        return cls(frame=normalize_claims(pd.DataFrame()), version=_fingerprint("", None), source=source)

    @property
    def is_empty(self) -> bool:
        return self.frame.empty


def _fingerprint(text: str, today: pd.Timestamp | None) -> str:
    digest = hashlib.sha1(text.encode("utf-8"))
    if today is not None:
        # Aging is derived from today's date, so it is part of the version.
        digest.update(today.date().isoformat().encode("ascii"))
    return digest.hexdigest()


def _column(raw: pd.DataFrame, *names: str) -> pd.Series | None:
    for name in names:
        if name in raw.columns:
            return raw[name]
    return None


def _to_number(series: pd.Series | None, index: pd.Index) -> pd.Series:
    """Locale-agnostic float parse; NaN where the value is missing or unparsable."""
    if series is None:
        return pd.Series(np.nan, index=index, dtype=float)
    if series.dtype == object:
        series = series.astype(str).str.strip()
    parsed = pd.to_numeric(series, errors="coerce").astype(float)
    return parsed.replace([np.inf, -np.inf], np.nan)


def _to_amount(series: pd.Series | None, index: pd.Index) -> pd.Series:
    return _to_number(series, index).fillna(0.0)


def _to_date(series: pd.Series | None, index: pd.Index) -> pd.Series:
    """Day-resolution dates in a single dtype, whatever pandas infers by default."""
    if series is None:
        return pd.Series(pd.NaT, index=index, dtype=DATE_DTYPE)
    if pd.api.types.is_datetime64_any_dtype(series):
        return series.dt.normalize().astype(DATE_DTYPE)
    text = series.fillna("").astype(str).str.strip()
    return pd.to_datetime(text, format="%Y-%m-%d", errors="coerce").astype(DATE_DTYPE)


def _to_text(series: pd.Series | None, index: pd.Index) -> pd.Series:
    if series is None:
        return pd.Series("", index=index, dtype=object)
    return series.fillna("").astype(str).str.strip()


def _to_flag(series: pd.Series | None, index: pd.Index) -> pd.Series:
    """Boolean-like column: native booleans, 1/0 and the literal "True"."""
    if series is None:
        return pd.Series(False, index=index, dtype=bool)
    return series.fillna("").astype(str).str.strip().str.lower().isin(TRUE_STRINGS)


def month_abbrev(dates: pd.Series) -> pd.Series:
    """Three-letter month for each date, "" where the date is missing."""
    months = dates.dt.month
    return months.map(lambda m: MONTH_ABBREVS[int(m) - 1] if pd.notna(m) else "").astype(object)


def normalize_claims(raw: pd.DataFrame, today: date | pd.Timestamp | None = None) -> pd.DataFrame:
    """Coerce a raw claims table into the canonical schema used by every view."""
    idx = raw.index
    today_ts = pd.Timestamp(today if today is not None else date.today()).normalize()

    ids = _to_text(_column(raw, "id"), idx)
    fallback_ids = pd.Series([f"row-{i}" for i in range(len(raw))], index=idx, dtype=object)
    ids = ids.where(ids != "", fallback_ids)

    billed = _to_amount(_column(raw, "billed"), idx)
    paid = _to_amount(_column(raw, "paid"), idx)
    adjustment = _to_amount(_column(raw, "adjustment"), idx)
    adjusted_billed = _to_number(_column(raw, "adjusted_billed", "adjustedBilled"), idx)
    adjusted_billed = adjusted_billed.fillna(billed - adjustment)
    denied_amount = _to_amount(_column(raw, "deniedAmount", "denied_amount"), idx)

    claim_date = _to_date(_column(raw, "date", "Date"), idx)
    charge_date = _to_date(_column(raw, "charge_date"), idx)
    billing_date = _to_date(_column(raw, "billing_date"), idx)
    service_date = _to_date(_column(raw, "service_date"), idx)
    service_date = service_date.where(service_date.notna(), charge_date)

    claim_status = _to_text(_column(raw, "claim_status", "status"), idx).str.lower()
    is_denied = (claim_status == "denied") | _to_flag(_column(raw, "denied"), idx)
    is_clean_claim = _to_flag(_column(raw, "is_clean_claim"), idx).astype(int)

    derived_aging = (today_ts - charge_date).dt.days.clip(lower=0)
    aging = _to_number(_column(raw, "aging"), idx).fillna(derived_aging).fillna(0).astype(int)

    out = pd.DataFrame(index=idx)
    out["id"] = ids
    out["billed"] = billed
    out["paid"] = paid
    out["adjustment"] = adjustment
    out["adjusted_billed"] = adjusted_billed
    out["denied_amount"] = denied_amount
    for col in TEXT_COLUMNS:
        out[col] = _to_text(_column(raw, col), idx)
    out["date"] = claim_date
    out["charge_date"] = charge_date
    out["billing_date"] = billing_date
    out["service_date"] = service_date
    out["claim_status"] = claim_status
    out["is_denied"] = is_denied.astype(bool)
    out["is_clean_claim"] = is_clean_claim
    out["aging"] = aging
    out["total_claims"] = _to_amount(_column(raw, "total_claims"), idx)
    out["first_pass_claims"] = _to_amount(_column(raw, "first_pass_claims"), idx)
    for key, suffix in METRIC_SOURCE_SUFFIX.items():
        out[f"target_{key}"] = _to_amount(_column(raw, f"target{suffix}", "target"), idx)
        out[f"baseline_{key}"] = _to_amount(_column(raw, f"baseline{suffix}", "baseline"), idx)
    out["month"] = month_abbrev(claim_date)
    return out.reset_index(drop=True)


def parse_claims_csv(
    text: str,
    source: str = "",
    today: date | pd.Timestamp | None = None,
) -> ClaimDataset:
    """Header-driven CSV parse into a normalized dataset. Empty input yields an empty dataset."""
    today_ts = pd.Timestamp(today if today is not None else date.today()).normalize()
    if not text or not text.strip():
        return ClaimDataset.empty(source=source)

    skipped: list[list[str]] = []

    def _skip_bad_line(fields: list[str]) -> None:
        skipped.append(fields)
        return None

    try:
        raw = pd.read_csv(
            StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_skip_bad_line,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        warnings.warn(f"Claims CSV could not be parsed ({source or 'inline'}): {exc}", stacklevel=2)
        return ClaimDataset.empty(source=source)
    if skipped:
        warnings.warn(
            f"Skipped {len(skipped)} malformed row(s) in claims CSV ({source or 'inline'})",
            stacklevel=2,
        )

    raw.columns = [str(c).strip() for c in raw.columns]
    if not raw.empty:
        # Rows made only of delimiters count as empty lines.
        raw = raw.loc[~(raw == "").all(axis=1)].reset_index(drop=True)

    frame = normalize_claims(raw, today=today_ts)
    return ClaimDataset(frame=frame, version=_fingerprint(text, today_ts), source=source)


def load_claims(path: Path | str, today: date | pd.Timestamp | None = None) -> ClaimDataset:
    """Read and normalize the claims file. A failed read gives an empty dataset, not an error."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        warnings.warn(f"Claims file could not be read ({path}): {exc}", stacklevel=2)
        return ClaimDataset.empty(source=str(path))
    return parse_claims_csv(text, source=str(path), today=today)
