"""
edge/services/processor.py

Per-(patient, measurement type) sliding windows of raw measurements,
plus the smoothed view used for anomaly detection.

Smoothing is a whole-window mean: every sample of the derived window carries
the same value, the mean of the current raw window. Raw storage is never
rewritten by smoothing.
"""

import collections

from edge.schemas import Measurement
from edge.services.stats import mean

# (patient_id, measurement_type)
WindowKey = tuple[str, str]


class SignalProcessor:
    """Bounded FIFO windows keyed by (patient_id, measurement_type)."""

    def __init__(self, window_size: int) -> None:
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self.window_size = window_size
        self._windows: dict[WindowKey, collections.deque] = {}

    def update_window(
        self,
        patient_id: str,
        measurement_type: str,
        measurement: Measurement,
    ) -> list[Measurement]:
        """Append a measurement, evicting the oldest beyond capacity."""
        key = (patient_id, measurement_type)
        if key not in self._windows:
            self._windows[key] = collections.deque(maxlen=self.window_size)
        window = self._windows[key]
        window.append(measurement)
        return list(window)

    def get_window(self, patient_id: str, measurement_type: str) -> list[Measurement]:
        window = self._windows.get((patient_id, measurement_type))
        return list(window) if window is not None else []

    def get_smoothed_window(
        self,
        patient_id: str,
        measurement_type: str,
    ) -> list[Measurement]:
        """Derived window where every sample's value is the raw window mean."""
        raw = self.get_window(patient_id, measurement_type)
        if not raw:
            return []
        average = mean([m.value for m in raw])
        return [m.model_copy(update={"value": average}) for m in raw]

    def stream_count(self) -> int:
        return len(self._windows)
