from __future__ import annotations

from datetime import date
from pathlib import Path
import sys

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rcm_dashboard.analysis import TrendDetails, recent_comparison_rows
from rcm_dashboard.config import (
    ALL,
    DEFAULT_DATA_FILE,
    DEFAULT_RANGE,
    METRIC_DESCRIPTIONS,
    METRIC_LABELS,
    METRIC_SHORT_LABELS,
    PAGE_SIZE,
    PAYER_MEASURE_LABELS,
    RANGE_LABELS,
)
from rcm_dashboard.data import ClaimDataset, load_claims, parse_claims_csv
from rcm_dashboard.filters import FilterState, client_options, month_options
from rcm_dashboard.formatting import (
    format_change,
    format_count,
    format_currency,
    format_days,
    format_metric,
    format_percent,
)
from rcm_dashboard.pagination import paginate
from rcm_dashboard.views import MetricView, ViewCache

PAGES = {
    "Dashboard": None,
    "GCR": "gcr",
    "NCR": "ncr",
    "Denial Rate": "denial_rate",
    "FPR": "fpr",
    "CCR": "ccr",
    "Total Claims": "total_claims",
    "Billing Lag": "billing_lag",
}

OVERVIEW_METRICS = ["gcr", "ncr", "denial_rate", "ccr", "fpr"]

# Summary cards per page: (label, summary key, kind).
SUMMARY_CARDS = {
    "gcr": [("Overall GCR", "gcr", "percent"), ("Total Payment", "total_paid", "currency"), ("Total Billed", "total_billed", "currency")],
    "ncr": [
        ("Overall NCR", "ncr", "percent"),
        ("Total Payment", "total_paid", "currency"),
        ("Total Billed", "total_billed", "currency"),
        ("Total Adjustments", "total_adjustment", "currency"),
    ],
    "denial_rate": [
        ("Overall Denial Rate", "denial_rate", "percent"),
        ("Total Claims", "total_claims", "count"),
        ("Denied Claims", "denied_claims", "count"),
    ],
    "fpr": [
        ("Overall FPR", "fpr", "percent"),
        ("Total Claims", "reported_claims", "count"),
        ("First Pass Claims", "first_pass_claims", "count"),
    ],
    "ccr": [
        ("Overall CCR", "ccr", "percent"),
        ("Total Claims", "total_claims", "count"),
        ("Clean Claims", "clean_claims", "count"),
    ],
    "total_claims": [
        ("Total Claims", "total_claims", "count"),
        ("Total Billed", "total_billed", "currency"),
        ("Total Paid", "total_paid", "currency"),
    ],
    "billing_lag": [
        ("Avg Billing Lag", "billing_lag", "days"),
        ("Total Claims", "total_claims", "count"),
        ("Billed Amount", "total_billed", "currency"),
    ],
}

TABLE_COLUMNS = {
    "id": "Claim ID",
    "date": "Date",
    "client": "Client",
    "payer": "Payer",
    "billed": "Billed Amount ($)",
    "paid": "Paid Amount ($)",
    "adjustment": "Adjustment ($)",
    "claim_status": "Status",
    "reason": "Adjustment Reason",
    "total_claims": "Total Claims",
    "first_pass_claims": "First Pass Claims",
    "is_clean_claim": "Clean Claim",
    "service_date": "Service Date",
    "billing_date": "Billing Date",
    "lag_days": "Lag (days)",
}

TABLE_LAYOUT = {
    "gcr": ["id", "billed", "paid", "reason", "payer"],
    "ncr": ["id", "billed", "adjustment", "paid", "reason", "payer"],
    "denial_rate": ["id", "date", "payer", "claim_status", "reason", "billed"],
    "fpr": ["id", "date", "payer", "total_claims", "first_pass_claims"],
    "ccr": ["id", "date", "payer", "is_clean_claim", "billed", "paid"],
    "total_claims": ["id", "date", "client", "payer", "billed", "paid"],
    "billing_lag": ["id", "client", "payer", "service_date", "billing_date", "lag_days"],
}


@st.cache_data(show_spinner=False)
def _load_default(path: str, today: date) -> ClaimDataset:
    return load_claims(path, today=today)


@st.cache_data(show_spinner=False)
def _load_uploaded(text: str, name: str, today: date) -> ClaimDataset:
    return parse_claims_csv(text, source=name, today=today)


@st.cache_resource
def _view_cache() -> ViewCache:
    return ViewCache()


def _format_card(value: object, kind: str) -> str:
    if kind == "percent":
        return format_percent(value)
    if kind == "currency":
        return format_currency(value)
    if kind == "days":
        return format_days(value)
    return format_count(value)


def _trend_delta(trend: TrendDetails | None) -> str | None:
    if trend is None or trend.direction == "steady":
        return None
    if trend.percentage is None:
        return "▲" if trend.direction == "increase" else "▼"
    sign = "+" if trend.percentage >= 0 else ""
    return f"{sign}{trend.percentage}%"


def _monthly_chart(view: MetricView) -> go.Figure:
    label = METRIC_SHORT_LABELS[view.metric]
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=view.monthly["month"],
            y=view.monthly["actual"],
            mode="lines+markers",
            name=f"Actual {label}",
            line={"width": 2, "color": "#10b981"},
        )
    )
    if view.monthly["target"].astype(float).any():
        fig.add_trace(
            go.Scatter(
                x=view.monthly["month"],
                y=view.monthly["target"],
                mode="lines",
                name=f"Target {label}",
                line={"dash": "dash", "color": "#f43f5e"},
            )
        )
    fig.update_layout(title=f"Monthly {label} Trend", xaxis_title="Month", height=320)
    return fig


def _recent_chart(view: MetricView) -> go.Figure:
    rows = recent_comparison_rows(view.recent)
    fig = go.Figure(go.Bar(x=rows["label"], y=rows["value"], marker_color="#5759ce"))
    fig.update_layout(title="Avg 3 Months vs Last Month", height=320)
    return fig


def _payer_chart(view: MetricView) -> go.Figure:
    fig = go.Figure()
    colors = ["#10b981", "#ef4444"]
    measures = [c for c in view.payers.columns if c != "payer"]
    for measure, color in zip(measures, colors):
        fig.add_trace(
            go.Bar(
                y=view.payers["payer"],
                x=view.payers[measure],
                orientation="h",
                name=PAYER_MEASURE_LABELS.get(measure, measure),
                marker_color=color,
            )
        )
    fig.update_layout(title="Payer Breakdown", barmode="group", height=320)
    return fig


def _table_frame(rows: pd.DataFrame, metric: str) -> pd.DataFrame:
    columns = [c for c in TABLE_LAYOUT[metric] if c in rows.columns]
    out = rows[columns].copy()
    for col in ("date", "service_date", "billing_date"):
        if col in out.columns:
            out[col] = out[col].dt.strftime("%Y-%m-%d").fillna("")
    for col in ("billed", "paid", "adjustment"):
        if col in out.columns:
            out[col] = out[col].map(lambda v: f"{v:,.2f}")
    return out.rename(columns=TABLE_COLUMNS)


def _render_table(view: MetricView) -> None:
    st.subheader("Claim Level Details")
    state_key = f"page_{view.metric}"
    page = paginate(view.table, st.session_state.get(state_key, 1), page_size=PAGE_SIZE)
    st.session_state[state_key] = page.page_number

    if page.rows.empty:
        st.info("No claims match the current filters.")
    else:
        st.dataframe(_table_frame(page.rows, view.metric), use_container_width=True, hide_index=True)

    buttons = st.columns(len(page.window) + 2)
    if buttons[0].button("<", key=f"{state_key}_prev", disabled=not page.has_previous):
        st.session_state[state_key] = page.page_number - 1
        st.rerun()
    for col, number in zip(buttons[1:-1], page.window):
        if col.button(str(number), key=f"{state_key}_{number}", type="primary" if number == page.page_number else "secondary"):
            st.session_state[state_key] = number
            st.rerun()
    if buttons[-1].button(">", key=f"{state_key}_next", disabled=not page.has_next):
        st.session_state[state_key] = page.page_number + 1
        st.rerun()
    st.caption(f"Page {page.page_number} of {max(page.total_pages, 1)} | {len(view.table):,} claims")


def _filter_controls(dataset: ClaimDataset, metric: str) -> FilterState:
    state: FilterState = st.session_state.get("filters", FilterState())
    clients = client_options(dataset.frame)
    if state.client not in clients:
        state = FilterState()

    left, right = st.columns(2)
    client = left.selectbox("Client", options=clients, index=clients.index(state.client))
    if client != state.client:
        state = state.with_client(client)
        st.session_state[f"page_{metric}"] = 1

    months = month_options(dataset.frame, state.client)
    if state.month not in months:
        state = state.with_month(ALL)
    month = right.selectbox("Month", options=months, index=months.index(state.month))
    if month != state.month:
        state = state.with_month(month)
        st.session_state[f"page_{metric}"] = 1

    st.session_state["filters"] = state
    return state


def _render_metric_page(dataset: ClaimDataset, metric: str) -> None:
    st.title(f"{METRIC_LABELS[metric]} Dashboard")
    st.caption(METRIC_DESCRIPTIONS[metric])

    state = _filter_controls(dataset, metric)
    view = _view_cache().metric_view(dataset, state, metric)

    cards = SUMMARY_CARDS[metric]
    for col, (label, key, kind) in zip(st.columns(len(cards)), cards):
        delta = _trend_delta(view.trends.get(key))
        inverse = metric in {"denial_rate", "billing_lag"} and key == metric
        col.metric(label, _format_card(view.summary.get(key, 0), kind), delta=delta, delta_color="inverse" if inverse else "normal")

    c1, c2, c3 = st.columns(3)
    c1.plotly_chart(_monthly_chart(view), use_container_width=True)
    if view.recent:
        c2.plotly_chart(_recent_chart(view), use_container_width=True)
    else:
        c2.info("No months with data for this selection.")
    if view.payers.empty:
        c3.info("No payer data for this selection.")
    else:
        c3.plotly_chart(_payer_chart(view), use_container_width=True)

    _render_table(view)


def _sparkline(df: pd.DataFrame, color: str) -> go.Figure:
    fig = go.Figure(go.Scatter(x=df["date"], y=df["value"], mode="lines", fill="tozeroy", line={"color": color, "width": 2}))
    fig.update_layout(height=80, margin={"l": 0, "r": 0, "t": 0, "b": 0}, showlegend=False)
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    return fig


def _render_overview(dataset: ClaimDataset, today: date) -> None:
    st.title("RCM Dashboard")
    st.caption("Billing and collections KPIs, current window against the previous one")

    range_keys = list(RANGE_LABELS)
    range_key = st.selectbox(
        "Range",
        options=range_keys,
        index=range_keys.index(DEFAULT_RANGE),
        format_func=lambda k: RANGE_LABELS[k],
    )
    chart_metric = st.radio(
        "Trend metric",
        options=OVERVIEW_METRICS,
        format_func=lambda k: METRIC_SHORT_LABELS[k],
        horizontal=True,
    )
    overview = _view_cache().overview(dataset, pd.Timestamp(today), range_key=range_key, metric=chart_metric)

    comparison = overview.comparison.set_index("metric")
    card_metrics = ["gcr", "ncr", "denial_rate", "fpr", "ccr", "total_claims"]
    for col, metric in zip(st.columns(len(card_metrics)), card_metrics):
        row = comparison.loc[metric]
        col.metric(
            METRIC_SHORT_LABELS[metric],
            format_metric(row["current"], metric),
            delta=format_change(row["percent_change"]),
            delta_color="inverse" if metric == "denial_rate" else "normal",
        )
        spark = overview.sparklines[metric]
        if not spark.empty:
            col.plotly_chart(_sparkline(spark, row["color"]), use_container_width=True, config={"displayModeBar": False})

    main, side = st.columns([2, 1])
    trend_fig = go.Figure()
    if not overview.trend.empty:
        trend_fig.add_trace(go.Scatter(x=overview.trend["label"], y=overview.trend["actual"], mode="lines+markers", name="Actual"))
        trend_fig.add_trace(go.Scatter(x=overview.trend["label"], y=overview.trend["target"], mode="lines", name="Target", line={"dash": "dash"}))
        trend_fig.add_trace(go.Scatter(x=overview.trend["label"], y=overview.trend["baseline"], mode="lines", name="Baseline", line={"dash": "dot"}))
    trend_fig.update_layout(title=f"{METRIC_LABELS[chart_metric]} by Month", height=360)
    main.plotly_chart(trend_fig, use_container_width=True)

    side_labels = {"charge_lag": "Charge Lag", "billing_lag": "Billing Lag", "total_payments": "Total Payments"}
    for name, card in overview.side_cards.items():
        value = format_currency(card.current) if name == "total_payments" else format_days(card.current)
        side.metric(
            side_labels[name],
            value,
            delta=format_change(card.percent_change),
            delta_color="normal" if name == "total_payments" else "inverse",
        )

    aging_col, ar_col, compare_col = st.columns(3)
    pie = go.Figure(go.Pie(labels=overview.ar_aging["bucket"], values=overview.ar_aging["count"], hole=0.4))
    pie.update_layout(title="AR Aging", height=320)
    aging_col.plotly_chart(pie, use_container_width=True)

    ar_fig = go.Figure()
    if not overview.ar_days_trend.empty:
        ar_fig.add_trace(go.Bar(x=overview.ar_days_trend["label"], y=overview.ar_days_trend["value"], marker_color="#8b5cf6"))
    ar_fig.update_layout(title=f"AR Days (avg {overview.average_ar_days})", height=320)
    ar_col.plotly_chart(ar_fig, use_container_width=True)

    rate_rows = overview.comparison[overview.comparison["metric"].isin(OVERVIEW_METRICS)]
    compare_fig = go.Figure()
    compare_fig.add_trace(go.Bar(y=rate_rows["label"], x=rate_rows["current"], orientation="h", name="Current"))
    compare_fig.add_trace(go.Bar(y=rate_rows["label"], x=-rate_rows["previous"], orientation="h", name="Previous"))
    compare_fig.update_layout(title="Current vs Previous Period (%)", barmode="relative", height=320)
    compare_col.plotly_chart(compare_fig, use_container_width=True)


def _dataset(today: date) -> ClaimDataset:
    uploaded = st.sidebar.file_uploader("Claims CSV", type=["csv"])
    if uploaded is not None:
        text = uploaded.getvalue().decode("utf-8-sig", errors="replace")
        return _load_uploaded(text, uploaded.name, today)
    return _load_default(str(DEFAULT_DATA_FILE), today)


def main() -> None:
    st.set_page_config(page_title="RCM KPI Dashboard", layout="wide")
    today = date.today()

    page = st.sidebar.radio("View", options=list(PAGES))
    dataset = _dataset(today)
    if dataset.is_empty:
        st.warning(f"No claim rows loaded from {dataset.source or 'the selected file'}. All views are empty.")

    metric = PAGES[page]
    if metric is None:
        _render_overview(dataset, today)
    else:
        _render_metric_page(dataset, metric)

    st.sidebar.caption(f"{len(dataset.frame):,} claim rows | source: {Path(dataset.source).name if dataset.source else 'n/a'}")


if __name__ == "__main__":
    main()
