from __future__ import annotations

from dataclasses import dataclass, replace

import pandas as pd

from .config import ALL, MONTH_ABBREVS


@dataclass(frozen=True)
class FilterState:
    client: str = ALL
    month: str = ALL

    def with_client(self, client: str) -> "FilterState":
        """Selecting a client always resets the month."""
        return FilterState(client=client, month=ALL)

    def with_month(self, month: str) -> "FilterState":
        if month != ALL and month not in MONTH_ABBREVS:
            raise ValueError(f"Unknown month abbreviation: {month!r}")
        return replace(self, month=month)

    @property
    def client_only(self) -> "FilterState":
        return FilterState(client=self.client, month=ALL)


def apply_filters(frame: pd.DataFrame, state: FilterState) -> pd.DataFrame:
    """Rows matching the client and month selection, original order kept."""
    mask = pd.Series(True, index=frame.index)
    if state.client != ALL:
        mask &= frame["client"] == state.client
    if state.month != ALL:
        mask &= frame["month"] == state.month
    return frame.loc[mask]


def client_options(frame: pd.DataFrame) -> list[str]:
    clients = [c for c in frame["client"].drop_duplicates().tolist() if c]
    return [ALL, *clients]


def month_options(frame: pd.DataFrame, client: str = ALL) -> list[str]:
    """Months that have data for the client, in calendar order."""
    subset = apply_filters(frame, FilterState(client=client))
    present = set(subset["month"].tolist())
    return [ALL, *[m for m in MONTH_ABBREVS if m in present]]
