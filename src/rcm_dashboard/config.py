from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BASE_DIR / "data"
ARTIFACT_DIR = BASE_DIR / "artifacts"
DEFAULT_DATA_FILE = DATA_DIR / "sample-data.csv"

ALL = "All"
PAGE_SIZE = 10
PAGE_WINDOW = 5
SPARKLINE_DAYS = 30
VIEW_CACHE_SIZE = 64

MONTH_ABBREVS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

# Comparison ranges for the overview page, in months.
RANGE_MONTHS = {
    "1m": 1,
    "3m": 3,
    "6m": 6,
    "12m": 12,
}
DEFAULT_RANGE = "3m"

RANGE_LABELS = {
    "1m": "Last 1 Month",
    "3m": "Last 3 Months",
    "6m": "Last 6 Months",
    "12m": "Last 12 Months",
}

METRIC_KEYS = ["gcr", "ncr", "denial_rate", "fpr", "ccr", "total_claims", "billing_lag"]

# Source CSV column suffix for per-row target*/baseline* columns.
METRIC_SOURCE_SUFFIX = {
    "gcr": "gcr",
    "ncr": "ncr",
    "denial_rate": "denialrate",
    "fpr": "fpr",
    "ccr": "ccr",
}

# Industry defaults used when a month has no per-row target.
METRIC_TARGETS = {
    "gcr": 95.0,
    "ncr": 95.0,
    "denial_rate": 10.0,
    "fpr": 90.0,
    "ccr": 90.0,
    "total_claims": None,
    "billing_lag": None,
}

METRIC_LABELS = {
    "gcr": "Gross Collection Rate (GCR)",
    "ncr": "Net Collection Rate (NCR)",
    "denial_rate": "Denial Rate",
    "fpr": "First Pass Rate (FPR)",
    "ccr": "Clean Claim Rate (CCR)",
    "total_claims": "Total Claims",
    "billing_lag": "Billing Lag",
}

METRIC_SHORT_LABELS = {
    "gcr": "GCR",
    "ncr": "NCR",
    "denial_rate": "Denial Rate",
    "fpr": "FPR",
    "ccr": "CCR",
    "total_claims": "Total Claims",
    "billing_lag": "Billing Lag",
}

METRIC_DESCRIPTIONS = {
    "gcr": "Payments received as a share of gross billed charges.",
    "ncr": "Payments as a share of billed charges net of contractual adjustments.",
    "denial_rate": "Share of claims rejected by the payer.",
    "fpr": "Share of claims paid on first submission without rework.",
    "ccr": "Share of claims submitted without errors requiring correction.",
    "total_claims": "Number of claims in the selection.",
    "billing_lag": "Average days between the service date and billing submission.",
}

PAYER_MEASURE_LABELS = {
    "payments": "Payments ($)",
    "denied": "Denied ($)",
    "net_billed": "Net Billed ($)",
    "first_pass": "First Pass Claims",
    "clean": "Clean Claims",
    "other": "Other Claims",
    "claims": "Claims",
    "billed": "Billed ($)",
    "avg_lag": "Avg Lag (days)",
}

# Upper bound (inclusive) of each AR aging bucket in days; None is open-ended.
AGING_BUCKETS = [
    ("0-30 Days", 30),
    ("31-60 Days", 60),
    ("61-90 Days", 90),
    ("90+ Days", None),
]

TREND_COLORS = {
    "favorable": "#198754",
    "unfavorable": "#dc3545",
    "neutral": "#6c757d",
}
