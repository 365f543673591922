"""
edge/services/offline_cache.py

Connectivity-aware store-and-forward buffer.
Measurements and alerts share one queue and are stamped with their own
event time, so a flush replays them in the order they occurred regardless
of the order they were stored in. In-memory only; nothing survives a restart.
"""

import structlog

from edge.constants import EVENT_ALERT, EVENT_MEASUREMENT
from edge.schemas import AlertEvent, CachedEvent, Measurement

logger = structlog.get_logger(__name__)


class OfflineCache:
    """Connectivity flag plus a unified queue of CachedEvent."""

    def __init__(self, online: bool = True) -> None:
        self._online = bool(online)
        self._events: list[CachedEvent] = []

    def set_online(self, flag: bool) -> None:
        online = bool(flag)
        if online != self._online:
            logger.info(
                "connectivity_changed",
                online=online,
                pending_events=len(self._events),
            )
        self._online = online

    def is_online(self) -> bool:
        return self._online

    def store_measurement(self, measurement: Measurement) -> None:
        self._events.append(
            CachedEvent(
                type=EVENT_MEASUREMENT,
                payload=measurement,
                timestamp=measurement.timestamp,
            )
        )

    def store_alert(self, alert: AlertEvent) -> None:
        self._events.append(
            CachedEvent(
                type=EVENT_ALERT,
                payload=alert,
                timestamp=alert.timestamp,
            )
        )

    def flush(self) -> list[CachedEvent]:
        """Drain the queue, oldest event time first. Ties keep insertion order."""
        drained, self._events = self._events, []
        return sorted(drained, key=lambda event: event.timestamp)

    def pending_count(self) -> int:
        return len(self._events)
