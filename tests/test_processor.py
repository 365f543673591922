"""
tests/test_processor.py

Unit tests for edge/services/processor.py.
Covers window bounds, key isolation and the whole-window mean smoothing.
"""

import pytest

from edge.services.processor import SignalProcessor
from tests.fixtures import TEST_PATIENT_ID, build_series


def _fill(processor: SignalProcessor, values: list[float], **kwargs: str) -> None:
    for m in build_series(values, **kwargs):
        processor.update_window(m.patient_id, m.measurement_type, m)


def test_window_keeps_last_window_size_items_in_order() -> None:
    processor = SignalProcessor(window_size=5)

    _fill(processor, [70 + i for i in range(10)])

    window = processor.get_window(TEST_PATIENT_ID, "HEART_RATE")
    assert [m.value for m in window] == [75, 76, 77, 78, 79]


def test_update_window_returns_current_window() -> None:
    processor = SignalProcessor(window_size=2)
    first, second, third = build_series([1, 2, 3])

    processor.update_window(TEST_PATIENT_ID, "HEART_RATE", first)
    processor.update_window(TEST_PATIENT_ID, "HEART_RATE", second)
    window = processor.update_window(TEST_PATIENT_ID, "HEART_RATE", third)

    assert window == [second, third]


def test_unknown_stream_has_empty_window() -> None:
    processor = SignalProcessor(window_size=5)

    assert processor.get_window("nobody", "SPO2") == []
    assert processor.get_smoothed_window("nobody", "SPO2") == []


def test_windows_are_isolated_per_patient_and_type() -> None:
    processor = SignalProcessor(window_size=5)

    _fill(processor, [80, 81])
    _fill(processor, [97], measurement_type="SPO2")
    _fill(processor, [60], patient_id="P002")

    assert len(processor.get_window(TEST_PATIENT_ID, "HEART_RATE")) == 2
    assert len(processor.get_window(TEST_PATIENT_ID, "SPO2")) == 1
    assert len(processor.get_window("P002", "HEART_RATE")) == 1


def test_returned_window_is_a_copy() -> None:
    processor = SignalProcessor(window_size=5)
    _fill(processor, [80, 81])

    processor.get_window(TEST_PATIENT_ID, "HEART_RATE").clear()

    assert len(processor.get_window(TEST_PATIENT_ID, "HEART_RATE")) == 2


def test_smoothed_window_is_whole_window_mean() -> None:
    """Every derived sample carries the same mean value."""
    processor = SignalProcessor(window_size=5)
    _fill(processor, [70, 80, 90])

    smoothed = processor.get_smoothed_window(TEST_PATIENT_ID, "HEART_RATE")

    assert [m.value for m in smoothed] == [80.0, 80.0, 80.0]


def test_smoothing_does_not_touch_raw_storage() -> None:
    processor = SignalProcessor(window_size=5)
    _fill(processor, [70, 80, 90])

    smoothed = processor.get_smoothed_window(TEST_PATIENT_ID, "HEART_RATE")
    raw = processor.get_window(TEST_PATIENT_ID, "HEART_RATE")

    assert [m.value for m in raw] == [70, 80, 90]
    assert [m.measurement_id for m in smoothed] == [m.measurement_id for m in raw]
    assert [m.timestamp for m in smoothed] == [m.timestamp for m in raw]


def test_window_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SignalProcessor(window_size=0)
