"""
edge/schemas.py

Pydantic data models for the edge pipeline.
- Measurement: one validated physiological sample
- Anomaly / AlertEvent: detection output and the alert built from it
- CachedEvent: store-and-forward wrapper used while offline
- IngestResult / FlushResult: pipeline results returned to callers
- EdgeConfig: the edge policy document (ranges, thresholds, trend, debounce, severity)

Wire format is camelCase JSON; Python attributes are snake_case.
"""

import uuid
from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from edge.constants import DEFAULT_SIGNAL_QUALITY


class _WireModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def _new_measurement_id() -> str:
    return f"M-{uuid.uuid4().hex}"


def _new_alert_id() -> str:
    return f"A-{uuid.uuid4().hex}"


# ── Edge policy document ─────────────────────────────────────


class ValueRange(_WireModel):
    """Closed plausibility interval [min, max]."""

    min: float
    max: float

    @model_validator(mode="after")
    def _check_bounds(self) -> "ValueRange":
        if self.min > self.max:
            raise ValueError(f"min {self.min} exceeds max {self.max}")
        return self


class ThresholdRange(_WireModel):
    """Alert thresholds; either bound may be omitted."""

    min: Optional[float] = None
    max: Optional[float] = None


class TrendConfig(_WireModel):
    min_points: int = Field(ge=1)
    slope_thresholds: dict[str, float] = Field(default_factory=dict)


class EdgeConfig(_WireModel):
    """Policy loaded once at startup; immutable for the process lifetime."""

    plausible_ranges: dict[str, ValueRange]
    window_size: int = Field(ge=1)
    thresholds: dict[str, ThresholdRange] = Field(default_factory=dict)
    trend: TrendConfig
    debounce_ms: int = Field(ge=0)
    severity_policy: dict[str, str] = Field(default_factory=dict)


# ── Pipeline records ─────────────────────────────────────────


class Measurement(_WireModel):
    """A single physiological sample for one patient."""

    measurement_id: str = Field(default_factory=_new_measurement_id)
    patient_id: str
    measurement_type: str  # see MeasurementType; config may extend it
    value: float
    timestamp: datetime
    signal_quality: float = DEFAULT_SIGNAL_QUALITY


class Anomaly(_WireModel):
    """A detected deviation over a measurement window."""

    anomaly_type: str  # THRESHOLD_LOW | THRESHOLD_HIGH | TREND
    measurement_type: str
    observed_value: float
    expected_range: Optional[ThresholdRange] = None  # None for trend findings
    detection_timestamp: datetime
    message: str
    context: dict[str, Any] = Field(default_factory=dict)


class AlertEvent(_WireModel):
    """Alert built from an anomaly once the debounce gate allows it."""

    alert_id: str = Field(default_factory=_new_alert_id)
    patient_id: str
    alert_type: str
    severity_level: str  # "LOW" | "MEDIUM" | "HIGH" or policy-defined
    timestamp: datetime
    associated_anomaly: Anomaly
    contextual_metadata: dict[str, Any] = Field(default_factory=dict)


class CachedEvent(_WireModel):
    """Offline cache entry. timestamp is the payload's event time."""

    type: Literal["measurement", "alert"]
    payload: Union[Measurement, AlertEvent]
    timestamp: datetime
    synced: bool = False


# ── Results ──────────────────────────────────────────────────


class ValidationResult(_WireModel):
    ok: bool
    reason: Optional[str] = None


class IngestResult(_WireModel):
    """Terminal result of one ingest_measurement call."""

    status: str  # ok | discarded | alert
    reason: Optional[str] = None
    measurement: Optional[Measurement] = None
    note: Optional[str] = None
    alert: Optional[AlertEvent] = None
    anomaly: Optional[Anomaly] = None


class FlushedData(_WireModel):
    measurements: list[Measurement] = Field(default_factory=list)
    alerts: list[AlertEvent] = Field(default_factory=list)


class FlushResult(_WireModel):
    status: str  # flushed | offline
    flushed: Optional[FlushedData] = None
