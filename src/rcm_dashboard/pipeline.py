from __future__ import annotations

from datetime import date, datetime, timezone
import json
import logging
from pathlib import Path

import pandas as pd

from .analysis import months_covered
from .config import ARTIFACT_DIR, DEFAULT_DATA_FILE, DEFAULT_RANGE, METRIC_KEYS
from .data import load_claims
from .filters import FilterState
from .views import build_metric_view, build_overview

logger = logging.getLogger(__name__)


def run_report(
    data_path: Path | str = DEFAULT_DATA_FILE,
    state: FilterState | None = None,
    range_key: str = DEFAULT_RANGE,
    today: date | pd.Timestamp | None = None,
    artifact_dir: Path | str = ARTIFACT_DIR,
) -> dict[str, object]:
    """Build every KPI view for one selection and write them to the artifact directory."""
    state = state or FilterState()
    today_ts = pd.Timestamp(today if today is not None else date.today()).normalize()
    out_dir = Path(artifact_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    dataset = load_claims(data_path, today=today_ts)
    logger.info("Loaded %d claim rows from %s", len(dataset.frame), dataset.source)
    if dataset.is_empty:
        logger.warning("No claim rows available; report views will be empty")

    overview = build_overview(dataset, today_ts, range_key=range_key)
    overview.comparison.to_csv(out_dir / "kpi_comparison.csv", index=False)
    overview.ar_aging.to_csv(out_dir / "ar_aging.csv", index=False)

    metric_summaries: dict[str, dict[str, object]] = {}
    for metric in METRIC_KEYS:
        view = build_metric_view(dataset, state, metric)
        view.monthly.to_csv(out_dir / f"monthly_{metric}.csv", index=False)
        view.payers.to_csv(out_dir / f"payers_{metric}.csv", index=False)
        metric_summaries[metric] = {
            "value": view.summary[metric],
            "recent": view.recent,
            "trend": {
                "direction": view.trends[metric].direction,
                "percentage": view.trends[metric].percentage,
            },
        }
        logger.debug("Built %s view: %d table rows", metric, len(view.table))

    filtered_view = build_metric_view(dataset, state, "total_claims")
    summary = {
        "source": dataset.source,
        "dataset_version": dataset.version,
        "filters": {"client": state.client, "month": state.month},
        "range": range_key,
        "rows": int(len(dataset.frame)),
        "filtered_rows": int(len(filtered_view.table)),
        "months_covered": months_covered(dataset.frame),
        "totals": {k: v for k, v in filtered_view.summary.items() if k not in METRIC_KEYS or k == "total_claims"},
        "metrics": metric_summaries,
        "overview": {
            "current": overview.current,
            "previous": overview.previous,
            "average_ar_days": overview.average_ar_days,
            "side_cards": {
                name: {
                    "current": card.current,
                    "previous": card.previous,
                    "percent_change": card.percent_change,
                    "direction": card.direction,
                }
                for name, card in overview.side_cards.items()
            },
        },
        "report_date": today_ts.date().isoformat(),
        "generated_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }

    with (out_dir / "summary.json").open("w", encoding="utf-8") as f:
        json.dump(summary, f, indent=2)

    logger.info("Report written to %s", out_dir)
    return summary
