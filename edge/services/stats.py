"""
edge/services/stats.py

Numeric helpers used for signal analysis: arithmetic mean and
least-squares slope of values against their index position.
"""

from typing import Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def slope(values: Sequence[float]) -> float:
    """
    Least-squares slope of values against positions 0..n-1.

    slope = sum(dx * dy) / sum(dx ** 2), with dx, dy the deviations from
    the index mean and the value mean. Returns 0.0 for fewer than two
    points or a zero denominator.
    """
    n = len(values)
    if n < 2:
        return 0.0

    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)
    dx = x - x.mean()
    dy = y - y.mean()

    denominator = float(np.sum(dx * dx))
    if denominator == 0:
        return 0.0
    return float(np.sum(dx * dy)) / denominator
