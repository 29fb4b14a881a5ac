"""Small numeric helpers shared by the threshold and clustering steps."""

from typing import Sequence

import numpy as np


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Percentile of an ascending sequence by linear interpolation.

    The fractional index is ``p * (n - 1)``; the result interpolates
    between the order statistics at its floor and ceiling.

    Args:
        sorted_values: Values sorted in ascending order.
        p: Fraction in [0, 1].

    Returns:
        Interpolated value, or 0.0 for an empty sequence.
    """
    if len(sorted_values) == 0:
        return 0.0
    return float(np.percentile(np.asarray(sorted_values, dtype=float), p * 100))


def sample_std(values: Sequence[float]) -> float:
    """Sample standard deviation (n - 1 divisor); 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))
