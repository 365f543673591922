"""
edge/constants.py

Clinical and pipeline constants used by the edge services.
Numeric policy (ranges, thresholds, debounce) lives in the edge config
document; only fixed values that are not operator-tunable belong here.
"""

from enum import Enum


class MeasurementType(str, Enum):
    """Known measurement types. The config may define additional ones."""

    HEART_RATE = "HEART_RATE"
    SPO2 = "SPO2"
    TEMPERATURE = "TEMPERATURE"


class AnomalyType(str, Enum):
    THRESHOLD_LOW = "THRESHOLD_LOW"
    THRESHOLD_HIGH = "THRESHOLD_HIGH"
    TREND = "TREND"


# ── Signal validation ────────────────────────────────────────
MIN_SIGNAL_QUALITY: float = 0.3
DEFAULT_SIGNAL_QUALITY: float = 1.0

REASON_MISSING_FIELDS: str = "missing fields"
REASON_LOW_SIGNAL_QUALITY: str = "low signal quality"
REASON_IMPLAUSIBLE_VALUE: str = "implausible value"
REASON_INVALID_TIMESTAMP: str = "invalid timestamp"
REASON_OUT_OF_ORDER: str = "out-of-order timestamp"

# ── Pipeline results ─────────────────────────────────────────
STATUS_OK: str = "ok"
STATUS_DISCARDED: str = "discarded"
STATUS_ALERT: str = "alert"
STATUS_OFFLINE: str = "offline"
STATUS_FLUSHED: str = "flushed"

NOTE_DEBOUNCED: str = "debounced"

# ── Alerting ─────────────────────────────────────────────────
DEFAULT_SEVERITY: str = "MEDIUM"

# ── Offline cache event tags ─────────────────────────────────
EVENT_MEASUREMENT: str = "measurement"
EVENT_ALERT: str = "alert"

# ── History ──────────────────────────────────────────────────
DEFAULT_HISTORY_LIMIT: int = 50
