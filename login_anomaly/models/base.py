"""
Base interface for anomaly scoring models.

Scorers implement a common fit/score interface so the orchestrator
does not depend on the reduction technique behind them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import numpy as np

from ..exceptions import ModelError


class BaseAnomalyDetector(ABC):
    """
    Abstract base class for anomaly scoring models.

    All models must implement:
        - fit(): Learn the baseline from encoded vectors
        - score(): Compute anomaly scores (higher = more anomalous)
    """

    def __init__(self, name: str, seed: int = 0, **kwargs):
        """
        Initialize detector.

        Args:
            name: Model name for logging/reporting.
            seed: Random seed for reproducibility.
            **kwargs: Model-specific parameters.
        """
        self.name = name
        self.seed = seed
        self.is_fitted = False

    @abstractmethod
    def fit(self, X: np.ndarray, y: Optional[np.ndarray] = None) -> "BaseAnomalyDetector":
        """
        Fit the model on training vectors.

        Args:
            X: Training features (n_samples, n_features).
            y: Ignored (unsupervised).

        Returns:
            self
        """
        pass

    @abstractmethod
    def score(self, X: np.ndarray) -> np.ndarray:
        """
        Compute anomaly scores for samples.

        Args:
            X: Encoded vectors.

        Returns:
            Anomaly scores (n_samples,).
        """
        pass

    def predict(self, X: np.ndarray, threshold: float) -> np.ndarray:
        """
        Binary predictions against a decision threshold.

        Returns:
            Array (n_samples,): 1 = anomaly (score > threshold), 0 = normal.
        """
        return (self.score(X) > threshold).astype(int)

    def get_params(self) -> Dict[str, Any]:
        """Get model parameters."""
        return {"name": self.name, "seed": self.seed}

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v}" for k, v in self.get_params().items())
        return f"{self.__class__.__name__}({params})"


class StaticDetector(BaseAnomalyDetector):
    """Base class for detectors over fixed-width vectors."""

    def validate_input(self, X: np.ndarray) -> np.ndarray:
        """
        Validate and reshape input.

        Args:
            X: Input array.

        Returns:
            2D float array (n_samples, n_features).
        """
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        elif X.ndim != 2:
            raise ModelError(f"Expected 2D input, got shape {X.shape}")
        if not np.all(np.isfinite(X)):
            raise ModelError("Input contains NaN or infinite values")
        return X
