"""
edge/services/notification.py

Delivery seam towards the backend.
- send_to_backend: forwards a raw measurement while online
- publish: pushes an alert to the notification channel

Both are stubs that log the delivery; retry and backoff belong to the
real transport client plugged in here.
"""

import structlog

from edge.schemas import AlertEvent, Measurement

logger = structlog.get_logger(__name__)


def send_to_backend(measurement: Measurement) -> None:
    """Forward a raw measurement to the backend ingestion API."""
    logger.debug(
        "measurement_forwarded",
        measurement_id=measurement.measurement_id,
        patient_id=measurement.patient_id,
        measurement_type=measurement.measurement_type,
    )
    # TODO: Call the backend ingestion client once its endpoint is defined


def publish(alert: AlertEvent) -> AlertEvent:
    """
    Push an alert to the notification channel.

    Returns the alert unchanged so callers can echo what was delivered.
    """
    logger.info(
        "alert_published",
        alert_id=alert.alert_id,
        patient_id=alert.patient_id,
        alert_type=alert.alert_type,
        severity_level=alert.severity_level,
    )
    return alert
