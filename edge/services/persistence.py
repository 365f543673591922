"""
edge/services/persistence.py

Append-only history of measurements and alerts, used for display.
The pipeline writes to it but never reads it back for decisions.
Uses SQLAlchemy 2.0 sessions.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from db.models import AlertHistory, MeasurementHistory
from edge.constants import DEFAULT_HISTORY_LIMIT
from edge.schemas import AlertEvent, Measurement

logger = structlog.get_logger(__name__)


class HistoryRepository:
    """History store backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def save_measurement(self, measurement: Measurement) -> None:
        """Insert a measurement record into measurement_history."""
        try:
            with self._session_factory() as session:
                session.add(
                    MeasurementHistory(
                        measurement_id=measurement.measurement_id,
                        patient_id=measurement.patient_id,
                        measurement_type=measurement.measurement_type,
                        value=measurement.value,
                        recorded_at=measurement.timestamp,
                        payload=measurement.model_dump_json(by_alias=True),
                    )
                )
                session.commit()
        except Exception as exc:
            logger.error(
                "measurement_history_write_failed",
                measurement_id=measurement.measurement_id,
                error=str(exc),
            )
            raise

    def save_alert(self, alert: AlertEvent) -> None:
        """Insert an alert record into alert_history."""
        try:
            with self._session_factory() as session:
                session.add(
                    AlertHistory(
                        alert_id=alert.alert_id,
                        patient_id=alert.patient_id,
                        alert_type=alert.alert_type,
                        severity_level=alert.severity_level,
                        triggered_at=alert.timestamp,
                        payload=alert.model_dump_json(by_alias=True),
                    )
                )
                session.commit()
        except Exception as exc:
            logger.error(
                "alert_history_write_failed",
                alert_id=alert.alert_id,
                error=str(exc),
            )
            raise

    def get_recent_measurements(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[Measurement]:
        """Most recently stored measurements first."""
        with self._session_factory() as session:
            rows = session.execute(
                select(MeasurementHistory.payload)
                .order_by(MeasurementHistory.id.desc())
                .limit(limit)
            ).scalars()
            return [Measurement.model_validate_json(payload) for payload in rows]

    def get_recent_alerts(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[AlertEvent]:
        """Most recently stored alerts first."""
        with self._session_factory() as session:
            rows = session.execute(
                select(AlertHistory.payload)
                .order_by(AlertHistory.id.desc())
                .limit(limit)
            ).scalars()
            return [AlertEvent.model_validate_json(payload) for payload in rows]

    def get_recent(self, limit: int = DEFAULT_HISTORY_LIMIT) -> dict[str, list]:
        return {
            "measurements": self.get_recent_measurements(limit),
            "alerts": self.get_recent_alerts(limit),
        }
