"""Utility functions."""

from .logging import setup_logger
from .reproducibility import set_all_seeds, get_environment_info
from .stats import percentile, sample_std

__all__ = [
    "setup_logger",
    "set_all_seeds",
    "get_environment_info",
    "percentile",
    "sample_std",
]
