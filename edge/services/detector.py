"""
edge/services/detector.py

Threshold and trend anomaly detection over a measurement window.
- detect_threshold: inspects only the most recent sample
- detect_trend: least-squares slope over the whole window
- build_finding: threshold result first, trend result otherwise

Stateless apart from its configuration.
"""

from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Sequence

import structlog

from edge.constants import AnomalyType, MeasurementType
from edge.schemas import Anomaly, Measurement, ThresholdRange, TrendConfig
from edge.services.stats import slope

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _below_min(value: float, limits: ThresholdRange) -> bool:
    return limits.min is not None and value < limits.min


def _above_max(value: float, limits: ThresholdRange) -> bool:
    return limits.max is not None and value > limits.max


def _at_or_above_max(value: float, limits: ThresholdRange) -> bool:
    return limits.max is not None and value >= limits.max


# Per-type threshold rule: (anomaly type, breach predicate, message suffix).
# TEMPERATURE's upper bound is inclusive, HEART_RATE's is exclusive.
ThresholdRule = tuple[AnomalyType, Callable[[float, ThresholdRange], bool], str]

_THRESHOLD_RULES: dict[str, ThresholdRule] = {
    MeasurementType.SPO2.value: (AnomalyType.THRESHOLD_LOW, _below_min, "too low"),
    MeasurementType.HEART_RATE.value: (AnomalyType.THRESHOLD_HIGH, _above_max, "too high"),
    MeasurementType.TEMPERATURE.value: (
        AnomalyType.THRESHOLD_HIGH,
        _at_or_above_max,
        "too high",
    ),
}

# Types for which a falling trend is the dangerous direction
_FALLING_TREND_TYPES: frozenset[str] = frozenset({MeasurementType.SPO2.value})


class AnomalyDetector:
    """Threshold + trend rules driven by the edge config."""

    def __init__(
        self,
        thresholds: Mapping[str, ThresholdRange],
        trend_config: TrendConfig,
        clock: Clock = _utcnow,
    ) -> None:
        self._thresholds = dict(thresholds)
        self._trend_config = trend_config
        self._clock = clock

    def detect_threshold(
        self,
        window: Sequence[Measurement],
        measurement_type: str,
    ) -> Optional[Anomaly]:
        if not window:
            return None
        limits = self._thresholds.get(measurement_type)
        rule = _THRESHOLD_RULES.get(measurement_type)
        if limits is None or rule is None:
            return None

        anomaly_type, breached, suffix = rule
        last = window[-1]
        if not breached(last.value, limits):
            return None

        return Anomaly(
            anomaly_type=anomaly_type.value,
            measurement_type=measurement_type,
            observed_value=last.value,
            expected_range=limits,
            detection_timestamp=self._clock(),
            message=f"{measurement_type} {suffix}",
            context={"last": last},
        )

    def detect_trend(
        self,
        window: Sequence[Measurement],
        measurement_type: str,
    ) -> Optional[Anomaly]:
        if len(window) < self._trend_config.min_points:
            return None

        limit = self._trend_config.slope_thresholds.get(measurement_type)
        if limit is None:
            return None

        s = slope([m.value for m in window])
        if measurement_type in _FALLING_TREND_TYPES:
            bad_trend = s <= limit
        else:
            bad_trend = s >= limit
        if not bad_trend:
            return None

        last = window[-1]
        logger.debug(
            "trend_limit_crossed",
            measurement_type=measurement_type,
            slope=s,
            limit=limit,
            points=len(window),
        )
        return Anomaly(
            anomaly_type=AnomalyType.TREND.value,
            measurement_type=measurement_type,
            observed_value=last.value,
            expected_range=None,
            detection_timestamp=self._clock(),
            message=f"{measurement_type} trend anomaly (slope={s:.2f})",
            context={"slope": s, "last": last},
        )

    def build_finding(
        self,
        window: Sequence[Measurement],
        measurement_type: str,
    ) -> Optional[Anomaly]:
        """Threshold finding takes priority over a trend finding."""
        finding = self.detect_threshold(window, measurement_type)
        if finding is not None:
            return finding
        return self.detect_trend(window, measurement_type)
