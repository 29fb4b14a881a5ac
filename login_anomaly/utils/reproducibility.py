"""
Reproducibility utilities.

Training and reporting are deterministic given a seed; these helpers
pin the global generators and record library versions in the run log.
"""

import os
import random

import numpy as np


def set_all_seeds(seed: int = 0) -> None:
    """
    Set random seeds for Python's random module, NumPy and hashing.

    Models also receive the seed explicitly through ``random_state``;
    this covers any code path that falls back to the global generators.

    Args:
        seed: Integer seed value.
    """
    random.seed(seed)
    np.random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)


def get_environment_info() -> dict:
    """
    Collect environment information for reproducibility logging.

    Returns:
        Dictionary with library versions and platform info.
    """
    import platform
    import sys

    import joblib
    import pandas as pd
    import sklearn

    return {
        "python_version": sys.version.split()[0],
        "platform": platform.platform(),
        "numpy_version": np.__version__,
        "pandas_version": pd.__version__,
        "sklearn_version": sklearn.__version__,
        "joblib_version": joblib.__version__,
    }
