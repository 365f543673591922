"""
edge/services/alerts.py

Alert policy: severity classification, debounce gate and alert construction.

The debounce gate records the emission instant when it allows an alert,
before the alert is built or delivered. A failure after the gate still
consumes the debounce interval for that key.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

import structlog

from edge.constants import DEFAULT_SEVERITY
from edge.schemas import AlertEvent, Anomaly
from edge.services import notification

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

# (patient_id, measurement_type, anomaly_type)
DebounceKey = tuple[str, str, str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertPolicy:
    """Table-driven severity plus per-key debounce."""

    def __init__(
        self,
        debounce_ms: int,
        severity_policy: Optional[Mapping[str, str]] = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._debounce = timedelta(milliseconds=debounce_ms)
        self._severity_policy = dict(severity_policy or {})
        self._clock = clock
        # Grows with every distinct key; entries are never evicted
        self._last_emission: dict[DebounceKey, datetime] = {}

    def classify_severity(self, anomaly: Anomaly) -> str:
        return self._severity_policy.get(anomaly.measurement_type, DEFAULT_SEVERITY)

    def apply_debounce(self, patient_id: str, anomaly: Anomaly) -> bool:
        """
        Decide whether an alert for this anomaly may be emitted.

        Denies when the same (patient, measurement type, anomaly type) was
        emitted less than debounce_ms ago, leaving state untouched.
        Otherwise records now as the key's last emission and allows.
        """
        key = (patient_id, anomaly.measurement_type, anomaly.anomaly_type)
        now = self._clock()
        last = self._last_emission.get(key)

        if last is not None and now - last < self._debounce:
            logger.info(
                "alert_debounced",
                patient_id=patient_id,
                measurement_type=anomaly.measurement_type,
                anomaly_type=anomaly.anomaly_type,
                since_last_ms=int((now - last).total_seconds() * 1000),
            )
            return False

        self._last_emission[key] = now
        return True

    def create_alert(
        self,
        patient_id: str,
        anomaly: Anomaly,
        context_metadata: Optional[Mapping[str, Any]] = None,
    ) -> AlertEvent:
        return AlertEvent(
            patient_id=patient_id,
            alert_type=anomaly.anomaly_type,
            severity_level=self.classify_severity(anomaly),
            timestamp=self._clock(),
            associated_anomaly=anomaly,
            contextual_metadata=dict(context_metadata or {}),
        )

    def publish_alert(self, alert: AlertEvent) -> AlertEvent:
        return notification.publish(alert)

    def tracked_keys(self) -> int:
        return len(self._last_emission)
