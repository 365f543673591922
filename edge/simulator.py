"""
edge/simulator.py

Scripted end-to-end run of the edge pipeline against synthetic streams.
Covers normal operation, threshold alerts, debouncing, offline caching,
recovery with flush, low signal quality and a rising temperature.

Run with: python -m edge.simulator
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

import structlog

from config import load_edge_config, settings
from edge.services.edge_processor import EdgeProcessor

logger = structlog.get_logger(__name__)

PATIENT_ID: str = "P001"


def _clock(start: datetime, step: timedelta) -> Iterator[datetime]:
    current = start
    while True:
        yield current
        current += step


def build_scenarios() -> list[tuple[str, list[Any]]]:
    """Return (scenario name, steps). A step is a measurement dict or a command string."""
    ticks = _clock(datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc), timedelta(seconds=5))

    def meas(
        measurement_type: str,
        value: float,
        quality: float = 1.0,
        patient_id: str = PATIENT_ID,
    ) -> dict:
        return {
            "measurementId": f"M-{uuid.uuid4().hex[:12]}",
            "patientId": patient_id,
            "measurementType": measurement_type,
            "value": value,
            "timestamp": next(ticks).isoformat(),
            "signalQuality": quality,
        }

    return [
        ("normal_operation", [meas("HEART_RATE", 78), meas("HEART_RATE", 82)]),
        (
            "tachycardia_threshold",
            [meas("HEART_RATE", 250), meas("SPO2", 98), meas("TEMPERATURE", 36.9)],
        ),
        ("alert_debouncing", [meas("HEART_RATE", 240), meas("HEART_RATE", 245)]),
        (
            "offline_operation",
            ["offline", meas("SPO2", 88, patient_id="P002"), meas("SPO2", 86, patient_id="P002")],
        ),
        ("online_recovery", ["online", "flush"]),
        ("low_signal_quality", [meas("HEART_RATE", 80, quality=0.1)]),
        (
            "rising_temperature",
            [meas("TEMPERATURE", 37.0 + 0.5 * i, patient_id="P003") for i in range(5)],
        ),
    ]


def run(edge: EdgeProcessor) -> list[dict[str, Any]]:
    """Execute every scenario and return the collected results."""
    results: list[dict[str, Any]] = []
    for name, steps in build_scenarios():
        logger.info("scenario_started", scenario=name)
        for step in steps:
            if step == "offline":
                edge.set_online(False)
                continue
            if step == "online":
                edge.set_online(True)
                continue
            if step == "flush":
                outcome = edge.flush_cached_data().model_dump(mode="json", by_alias=True)
            else:
                outcome = edge.ingest_measurement(step).model_dump(
                    mode="json", by_alias=True, exclude_none=True
                )
            logger.info("scenario_step", scenario=name, status=outcome["status"])
            results.append({"scenario": name, **outcome})
    return results


def main() -> None:
    edge = EdgeProcessor(load_edge_config(settings.edge_config_path))
    results = run(edge)
    alerts = sum(1 for r in results if r["status"] == "alert")
    logger.info("simulation_complete", steps=len(results), alerts=alerts)


if __name__ == "__main__":
    main()
