"""
edge/services/edge_processor.py

EdgeProcessor: wires validation, windowing, detection, alerting and the
offline cache into the ingest pipeline.

Flow per measurement:
1. Validate; rejected measurements are discarded with a reason
2. Deliver the raw measurement (online) or cache it (offline)
3. Append to the (patient, type) window and record it in history
4. Detect anomalies on the smoothed window
5. Debounce, classify, build and deliver (publish or cache) the alert

Every public call runs to completion under one lock; windows, debounce
keys, the cache queue and stream timestamps are shared mutable state.
"""

import threading
from typing import Any, Mapping, Optional, Protocol, Sequence

import structlog

from config import Settings, load_edge_config
from db.models import create_session_factory
from edge.constants import (
    EVENT_ALERT,
    EVENT_MEASUREMENT,
    NOTE_DEBOUNCED,
    STATUS_ALERT,
    STATUS_DISCARDED,
    STATUS_FLUSHED,
    STATUS_OFFLINE,
    STATUS_OK,
)
from edge.schemas import (
    AlertEvent,
    Anomaly,
    CachedEvent,
    EdgeConfig,
    FlushedData,
    FlushResult,
    IngestResult,
    Measurement,
    ValidationResult,
)
from edge.services import notification
from edge.services.alerts import AlertPolicy
from edge.services.detector import AnomalyDetector
from edge.services.offline_cache import OfflineCache
from edge.services.persistence import HistoryRepository
from edge.services.processor import SignalProcessor
from edge.services.validator import SignalValidator, as_payload, build_measurement

logger = structlog.get_logger(__name__)


# ── Capability interfaces ────────────────────────────────────


class Validator(Protocol):
    def validate(self, measurement: Any) -> ValidationResult: ...


class WindowStore(Protocol):
    def update_window(
        self, patient_id: str, measurement_type: str, measurement: Measurement
    ) -> list[Measurement]: ...

    def get_window(self, patient_id: str, measurement_type: str) -> list[Measurement]: ...

    def get_smoothed_window(
        self, patient_id: str, measurement_type: str
    ) -> list[Measurement]: ...

    def stream_count(self) -> int: ...

class Detector(Protocol):
    def build_finding(
        self, window: Sequence[Measurement], measurement_type: str
    ) -> Optional[Anomaly]: ...


class AlertGate(Protocol):
    def apply_debounce(self, patient_id: str, anomaly: Anomaly) -> bool: ...

    def create_alert(
        self,
        patient_id: str,
        anomaly: Anomaly,
        context_metadata: Optional[Mapping[str, Any]] = None,
    ) -> AlertEvent: ...

    def publish_alert(self, alert: AlertEvent) -> AlertEvent: ...

    def tracked_keys(self) -> int: ...

class Cache(Protocol):
    def set_online(self, flag: bool) -> None: ...

    def is_online(self) -> bool: ...

    def store_measurement(self, measurement: Measurement) -> None: ...

    def store_alert(self, alert: AlertEvent) -> None: ...

    def flush(self) -> list[CachedEvent]: ...

    def pending_count(self) -> int: ...


class History(Protocol):
    def save_measurement(self, measurement: Measurement) -> None: ...

    def save_alert(self, alert: AlertEvent) -> None: ...


# ── Orchestrator ─────────────────────────────────────────────


class EdgeProcessor:
    """Ingest pipeline and connectivity state for one edge device."""

    def __init__(
        self,
        config: EdgeConfig,
        *,
        validator: Optional[Validator] = None,
        window_store: Optional[WindowStore] = None,
        detector: Optional[Detector] = None,
        alert_policy: Optional[AlertGate] = None,
        cache: Optional[Cache] = None,
        history: Optional[History] = None,
    ) -> None:
        self.config = config
        self.validator = validator or SignalValidator(config.plausible_ranges)
        self.window_store = window_store or SignalProcessor(config.window_size)
        self.detector = detector or AnomalyDetector(config.thresholds, config.trend)
        self.alert_policy = alert_policy or AlertPolicy(
            config.debounce_ms, config.severity_policy
        )
        self.cache = cache or OfflineCache()
        self.history = history
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "EdgeProcessor":
        """Build the full stack from process settings."""
        config = load_edge_config(settings.edge_config_path)
        history = None
        if settings.history_enabled:
            history = HistoryRepository(create_session_factory(settings.history_db_url))
        return cls(
            config,
            cache=OfflineCache(online=settings.start_online),
            history=history,
        )

    # ── Connectivity ─────────────────────────────────────────

    def set_online(self, flag: bool) -> None:
        """Update connectivity. Buffered data only leaves via flush_cached_data."""
        with self._lock:
            self.cache.set_online(flag)

    def is_online(self) -> bool:
        return self.cache.is_online()

    def pending_count(self) -> int:
        return self.cache.pending_count()

    def stream_count(self) -> int:
        return self.window_store.stream_count()

    def debounce_key_count(self) -> int:
        return self.alert_policy.tracked_keys()

    def get_window(self, patient_id: str, measurement_type: str) -> list[Measurement]:
        return self.window_store.get_window(patient_id, measurement_type)

    # ── Pipeline ─────────────────────────────────────────────

    def ingest_measurement(self, measurement: Any) -> IngestResult:
        with self._lock:
            return self._ingest(measurement)

    def _ingest(self, raw: Any) -> IngestResult:
        validation = self.validator.validate(raw)
        if not validation.ok:
            logger.warning(
                "measurement_discarded",
                reason=validation.reason,
                measurement=as_payload(raw),
            )
            return IngestResult(status=STATUS_DISCARDED, reason=validation.reason)

        measurement = build_measurement(as_payload(raw))
        patient_id = measurement.patient_id
        measurement_type = measurement.measurement_type

        self._deliver_measurement(measurement)

        self.window_store.update_window(patient_id, measurement_type, measurement)
        self._persist(measurement)

        smoothed = self.window_store.get_smoothed_window(patient_id, measurement_type)
        finding = self.detector.build_finding(smoothed, measurement_type)
        if finding is None:
            return IngestResult(status=STATUS_OK, measurement=measurement)

        if not self.alert_policy.apply_debounce(patient_id, finding):
            return IngestResult(
                status=STATUS_OK,
                measurement=measurement,
                note=NOTE_DEBOUNCED,
            )

        alert = self.alert_policy.create_alert(
            patient_id,
            finding,
            {"measurementType": measurement_type, "measurementId": measurement.measurement_id},
        )
        delivered = self._deliver_alert(alert)
        self._persist(delivered)
        logger.info(
            "alert_emitted",
            alert_id=delivered.alert_id,
            patient_id=patient_id,
            alert_type=delivered.alert_type,
            severity_level=delivered.severity_level,
            online=self.cache.is_online(),
        )
        return IngestResult(status=STATUS_ALERT, alert=delivered, anomaly=finding)

    def flush_cached_data(self) -> FlushResult:
        """Drain the offline cache in event-time order, split by event type."""
        with self._lock:
            if not self.cache.is_online():
                return FlushResult(status=STATUS_OFFLINE, flushed=None)

            events = self.cache.flush()
            measurements = [e.payload for e in events if e.type == EVENT_MEASUREMENT]
            alerts = [e.payload for e in events if e.type == EVENT_ALERT]
            logger.info(
                "cache_flushed",
                measurements=len(measurements),
                alerts=len(alerts),
            )
            return FlushResult(
                status=STATUS_FLUSHED,
                flushed=FlushedData(measurements=measurements, alerts=alerts),
            )

    # ── Delivery ─────────────────────────────────────────────

    def _deliver_measurement(self, measurement: Measurement) -> None:
        if self.cache.is_online():
            notification.send_to_backend(measurement)
            return
        self.cache.store_measurement(measurement)
        logger.debug(
            "measurement_cached",
            measurement_id=measurement.measurement_id,
            patient_id=measurement.patient_id,
        )

    def _deliver_alert(self, alert: AlertEvent) -> AlertEvent:
        if self.cache.is_online():
            return self.alert_policy.publish_alert(alert)
        self.cache.store_alert(alert)
        logger.info(
            "alert_cached",
            alert_id=alert.alert_id,
            patient_id=alert.patient_id,
            pending_events=self.cache.pending_count(),
        )
        return alert

    def _persist(self, record: Any) -> None:
        """Write to history; a failing store never aborts the pipeline."""
        if self.history is None:
            return
        try:
            if isinstance(record, AlertEvent):
                self.history.save_alert(record)
            else:
                self.history.save_measurement(record)
        except Exception as exc:
            logger.warning(
                "history_persist_failed",
                record_type=type(record).__name__,
                error=str(exc),
            )
