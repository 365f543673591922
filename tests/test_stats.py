"""
tests/test_stats.py

Unit tests for edge/services/stats.py.
"""

import pytest

from edge.services.stats import mean, slope


def test_mean_of_empty_sequence_is_zero() -> None:
    """Empty input returns 0 instead of dividing by zero."""
    assert mean([]) == 0.0


def test_mean_of_values() -> None:
    assert mean([1, 2, 3, 6]) == pytest.approx(3.0)


@pytest.mark.parametrize("values", [[], [42.0]])
def test_slope_needs_two_points(values: list[float]) -> None:
    """Fewer than two points have no trend."""
    assert slope(values) == 0.0


def test_slope_of_rising_series() -> None:
    assert slope([90, 94, 98, 102, 106]) == pytest.approx(4.0)


def test_slope_of_falling_series() -> None:
    assert slope([10, 8, 6]) == pytest.approx(-2.0)


def test_slope_of_flat_series_is_zero() -> None:
    assert slope([7, 7, 7, 7]) == pytest.approx(0.0)


def test_slope_is_least_squares_fit() -> None:
    """Noisy series: slope = sum(dx*dy) / sum(dx^2) over index positions."""
    # x mean = 1.5, y mean = 2.5; num = 4, den = 5
    assert slope([1, 3, 2, 4]) == pytest.approx(0.8)
