"""
tests/fixtures.py

Shared test data and helper functions for constructing test payloads.
All tests must use these fixtures instead of hardcoding test values.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from edge.schemas import (
    AlertEvent,
    Anomaly,
    EdgeConfig,
    Measurement,
    ThresholdRange,
)

BASE_TIME: datetime = datetime(2026, 1, 1, 10, 0, 0, tzinfo=timezone.utc)

TEST_PATIENT_ID: str = "P001"

# Mirrors config/thresholds.json, except SPO2 min which is 90 here
TEST_CONFIG_DOC: dict[str, Any] = {
    "plausibleRanges": {
        "HEART_RATE": {"min": 20, "max": 250},
        "SPO2": {"min": 50, "max": 100},
        "TEMPERATURE": {"min": 30.0, "max": 45.0},
    },
    "windowSize": 5,
    "thresholds": {
        "HEART_RATE": {"max": 120},
        "SPO2": {"min": 90},
        "TEMPERATURE": {"max": 39.0},
    },
    "trend": {
        "minPoints": 5,
        "slopeThresholds": {"HEART_RATE": 3.0, "SPO2": -1.0, "TEMPERATURE": 0.3},
    },
    "debounceMs": 60000,
    "severityPolicy": {"SPO2": "HIGH", "TEMPERATURE": "HIGH", "HEART_RATE": "MEDIUM"},
}


class FakeClock:
    """Manually advanced clock for debounce tests."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def build_config(**overrides: Any) -> EdgeConfig:
    """Build an EdgeConfig from TEST_CONFIG_DOC with top-level overrides (camelCase keys)."""
    doc = {**TEST_CONFIG_DOC, **overrides}
    return EdgeConfig.model_validate(doc)


def build_payload(
    measurement_type: str = "HEART_RATE",
    value: Any = 75,
    patient_id: Optional[str] = TEST_PATIENT_ID,
    timestamp: Any = None,
    signal_quality: Any = 1.0,
    measurement_id: str = "M-test",
) -> dict[str, Any]:
    """Build a wire-format measurement dict with sensible defaults for testing."""
    if timestamp is None:
        timestamp = BASE_TIME
    if isinstance(timestamp, datetime):
        timestamp = timestamp.isoformat()
    payload = {
        "measurementId": measurement_id,
        "patientId": patient_id,
        "measurementType": measurement_type,
        "value": value,
        "timestamp": timestamp,
        "signalQuality": signal_quality,
    }
    if patient_id is None:
        del payload["patientId"]
    return payload


def build_measurement(
    measurement_type: str = "HEART_RATE",
    value: float = 75,
    patient_id: str = TEST_PATIENT_ID,
    timestamp: Optional[datetime] = None,
    measurement_id: str = "M-test",
) -> Measurement:
    """Build a Measurement model with sensible defaults for testing."""
    return Measurement(
        measurement_id=measurement_id,
        patient_id=patient_id,
        measurement_type=measurement_type,
        value=value,
        timestamp=timestamp or BASE_TIME,
    )


def build_series(
    values: list[float],
    measurement_type: str = "HEART_RATE",
    patient_id: str = TEST_PATIENT_ID,
    step_seconds: int = 10,
) -> list[Measurement]:
    """Build a chronological window of measurements from a list of values."""
    return [
        build_measurement(
            measurement_type=measurement_type,
            value=value,
            patient_id=patient_id,
            timestamp=BASE_TIME + timedelta(seconds=i * step_seconds),
            measurement_id=f"M-{i}",
        )
        for i, value in enumerate(values)
    ]


def build_anomaly(
    measurement_type: str = "HEART_RATE",
    anomaly_type: str = "THRESHOLD_HIGH",
    observed_value: float = 140,
) -> Anomaly:
    """Build an Anomaly with sensible defaults for testing."""
    return Anomaly(
        anomaly_type=anomaly_type,
        measurement_type=measurement_type,
        observed_value=observed_value,
        expected_range=ThresholdRange(max=120),
        detection_timestamp=BASE_TIME,
        message=f"{measurement_type} too high",
    )


def build_alert(
    patient_id: str = TEST_PATIENT_ID,
    timestamp: Optional[datetime] = None,
    severity_level: str = "MEDIUM",
) -> AlertEvent:
    """Build an AlertEvent with sensible defaults for testing."""
    anomaly = build_anomaly()
    return AlertEvent(
        patient_id=patient_id,
        alert_type=anomaly.anomaly_type,
        severity_level=severity_level,
        timestamp=timestamp or BASE_TIME,
        associated_anomaly=anomaly,
    )
