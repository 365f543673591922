"""
edge/services/validator.py

Gatekeeper for incoming measurements.
Checks run in order and stop at the first failure:
structure, signal quality, value plausibility, temporal order per stream.

A successful validation advances the stream's last-seen timestamp, so
validating the same measurement twice is not idempotent when a newer one
arrived in between.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Union

import structlog

from edge.constants import (
    DEFAULT_SIGNAL_QUALITY,
    MIN_SIGNAL_QUALITY,
    REASON_IMPLAUSIBLE_VALUE,
    REASON_INVALID_TIMESTAMP,
    REASON_LOW_SIGNAL_QUALITY,
    REASON_MISSING_FIELDS,
    REASON_OUT_OF_ORDER,
)
from edge.schemas import Measurement, ValidationResult, ValueRange

logger = structlog.get_logger(__name__)

MeasurementInput = Union[Measurement, Mapping[str, Any]]

# (patient_id, measurement_type)
StreamKey = tuple[str, str]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _field(payload: Mapping[str, Any], camel: str, snake: str) -> Any:
    if camel in payload:
        return payload[camel]
    return payload.get(snake)


def as_payload(measurement: Any) -> Optional[dict[str, Any]]:
    """Normalize a Measurement or raw mapping to a camelCase dict."""
    if isinstance(measurement, Measurement):
        return measurement.model_dump(by_alias=True)
    if not isinstance(measurement, Mapping):
        return None
    payload = dict(measurement)
    for key in ("measurementType", "measurement_type"):
        if isinstance(payload.get(key), Enum):
            payload[key] = payload[key].value
    return payload


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """
    Convert a wire timestamp to an aware UTC-based datetime.

    Accepts ISO-8601 strings (trailing 'Z' allowed), datetime objects and
    epoch milliseconds. Naive values are taken as UTC. Returns None when
    the value cannot be read as a finite instant.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, (int, float)):
        if not math.isfinite(raw):
            return None
        try:
            parsed = datetime.fromtimestamp(raw / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(raw, str):
        text = raw.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_measurement(payload: Mapping[str, Any]) -> Measurement:
    """Build the immutable Measurement for a payload that passed validation."""
    quality = _field(payload, "signalQuality", "signal_quality")
    fields: dict[str, Any] = {
        "patient_id": _field(payload, "patientId", "patient_id"),
        "measurement_type": _field(payload, "measurementType", "measurement_type"),
        "value": payload.get("value"),
        "timestamp": parse_timestamp(payload.get("timestamp")),
        "signal_quality": DEFAULT_SIGNAL_QUALITY if quality is None else quality,
    }
    measurement_id = _field(payload, "measurementId", "measurement_id")
    if measurement_id:
        fields["measurement_id"] = str(measurement_id)
    return Measurement(**fields)


class SignalValidator:
    """Structural, quality, range and ordering checks for measurements."""

    def __init__(self, plausible_ranges: Mapping[str, ValueRange]) -> None:
        self._plausible_ranges = dict(plausible_ranges)
        self._last_timestamp_by_stream: dict[StreamKey, datetime] = {}

    def validate(self, measurement: MeasurementInput) -> ValidationResult:
        payload = as_payload(measurement)
        if payload is None:
            return ValidationResult(ok=False, reason=REASON_MISSING_FIELDS)

        patient_id = _field(payload, "patientId", "patient_id")
        measurement_type = _field(payload, "measurementType", "measurement_type")
        if not (isinstance(patient_id, str) and patient_id) or not (
            isinstance(measurement_type, str) and measurement_type
        ):
            return ValidationResult(ok=False, reason=REASON_MISSING_FIELDS)

        if not self._signal_quality_ok(payload):
            return ValidationResult(ok=False, reason=REASON_LOW_SIGNAL_QUALITY)

        if not self._value_plausible(measurement_type, payload.get("value")):
            return ValidationResult(ok=False, reason=REASON_IMPLAUSIBLE_VALUE)

        return self._check_timestamp_order(
            (patient_id, measurement_type), payload.get("timestamp")
        )

    def _signal_quality_ok(self, payload: Mapping[str, Any]) -> bool:
        quality = _field(payload, "signalQuality", "signal_quality")
        if quality is None:
            quality = DEFAULT_SIGNAL_QUALITY
        return _is_number(quality) and quality >= MIN_SIGNAL_QUALITY

    def _value_plausible(self, measurement_type: Any, value: Any) -> bool:
        # Unknown types have no configured range and are rejected
        plausible = self._plausible_ranges.get(measurement_type)
        if plausible is None:
            return False
        return _is_number(value) and plausible.min <= value <= plausible.max

    def _check_timestamp_order(self, key: StreamKey, raw_timestamp: Any) -> ValidationResult:
        instant = parse_timestamp(raw_timestamp)
        if instant is None:
            return ValidationResult(ok=False, reason=REASON_INVALID_TIMESTAMP)

        last = self._last_timestamp_by_stream.get(key)
        # Equal timestamps are accepted
        if last is not None and instant < last:
            logger.debug(
                "stream_timestamp_regressed",
                patient_id=key[0],
                measurement_type=key[1],
                last=last.isoformat(),
                received=instant.isoformat(),
            )
            return ValidationResult(ok=False, reason=REASON_OUT_OF_ORDER)

        self._last_timestamp_by_stream[key] = instant
        return ValidationResult(ok=True)
