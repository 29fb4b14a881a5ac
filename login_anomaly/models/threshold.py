"""
IQR-based decision threshold.

threshold = max(Q3 + iqr_multiplier * (Q3 - Q1), min_threshold)
"""

from dataclasses import dataclass
from typing import Sequence

from ..exceptions import InsufficientDataWarning
from ..utils.stats import percentile


@dataclass(frozen=True)
class Threshold:
    """Decision boundary and the quartiles it was derived from."""

    value: float
    q1: float
    q3: float
    iqr: float
    iqr_multiplier: float
    min_threshold: float


def compute_threshold(
    scores: Sequence[float],
    iqr_multiplier: float = 1.5,
    min_threshold: float = 0.8,
    min_scores: int = 4,
) -> Threshold:
    """
    Derive the anomaly threshold from a score distribution.

    Raises:
        InsufficientDataWarning: Fewer than ``min_scores`` scores.
    """
    if len(scores) < min_scores:
        raise InsufficientDataWarning(
            f"Not enough data for dynamic threshold ({len(scores)} scores, need {min_scores})"
        )

    ordered = sorted(float(s) for s in scores)
    q1 = percentile(ordered, 0.25)
    q3 = percentile(ordered, 0.75)
    iqr = q3 - q1

    return Threshold(
        value=max(q3 + iqr_multiplier * iqr, min_threshold),
        q1=q1,
        q3=q3,
        iqr=iqr,
        iqr_multiplier=iqr_multiplier,
        min_threshold=min_threshold,
    )


def threshold(scores: Sequence[float], iqr_multiplier: float = 1.5, min_threshold: float = 0.8) -> float:
    """Threshold value only."""
    return compute_threshold(scores, iqr_multiplier, min_threshold).value
