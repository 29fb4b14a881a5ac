"""
PCA-based anomaly scoring.

Uses reconstruction error from a low-rank PCA subspace as anomaly score.
Logins that cannot be well reconstructed from the principal components
learned on the training batch are considered anomalous.
"""

import logging
import math
from typing import Any, Dict, Optional

import numpy as np
from sklearn.decomposition import PCA

from ..exceptions import DimensionMismatchError, ModelError
from .base import StaticDetector

logger = logging.getLogger(__name__)


def choose_rank(n_features: int, min_rank: int = 2) -> int:
    """Rank of the fitted subspace: max(min_rank, round(sqrt(n_features)))."""
    return max(min_rank, int(round(math.sqrt(n_features))))


def choose_oversampling(rank: int, ratio: float = 0.5) -> int:
    """Extra random projections used by the randomized range finder."""
    return int(math.ceil(ratio * rank))


class PCAAnomalyDetector(StaticDetector):
    """
    Randomized PCA reconstruction-error scorer.

    The rank is derived from the encoded width, so the caller only
    chooses the bounds. After fitting, ``basis_`` holds the orthonormal
    components (rank, n_features) and ``mean_`` the centering vector.
    """

    def __init__(self, min_rank: int = 2, oversampling_ratio: float = 0.5, seed: int = 0):
        """
        Initialize PCA detector.

        Args:
            min_rank: Lower bound for the subspace rank.
            oversampling_ratio: Oversampling as a fraction of the rank.
            seed: Random seed for the randomized solver.
        """
        super().__init__(name="PCA_Reconstruction", seed=seed)

        self.min_rank = min_rank
        self.oversampling_ratio = oversampling_ratio

        self.basis_ = None
        self.mean_ = None
        self.rank_ = None
        self.oversampling_ = None
        self.explained_variance_ratio_ = None

    @property
    def n_features_(self) -> Optional[int]:
        return None if self.mean_ is None else int(self.mean_.shape[0])

    def fit(self, X: np.ndarray, y: Optional[np.ndarray] = None) -> "PCAAnomalyDetector":
        """
        Fit the subspace on encoded training vectors.

        Raises:
            ModelError: Fewer rows than the rank, degenerate (all-constant)
                input, or a solver failure.
        """
        X = self.validate_input(X)
        n_samples, n_features = X.shape

        rank = choose_rank(n_features, self.min_rank)
        oversampling = choose_oversampling(rank, self.oversampling_ratio)

        if rank > n_features:
            raise ModelError(f"Rank {rank} exceeds encoded dimensionality {n_features}")
        if n_samples < rank:
            raise ModelError(
                f"Need at least {rank} training rows for rank {rank}, got {n_samples}"
            )
        if np.all(np.ptp(X, axis=0) == 0):
            raise ModelError("Encoded features are degenerate (all dimensions constant)")

        logger.debug(f"PCA: Rank={rank}, Oversampling={oversampling}")

        pca = PCA(
            n_components=rank,
            svd_solver="randomized",
            n_oversamples=oversampling,
            random_state=self.seed,
        )
        try:
            pca.fit(X)
        except (ValueError, np.linalg.LinAlgError) as e:
            raise ModelError(f"PCA fit failed: {e}") from e

        self.basis_ = pca.components_.copy()
        self.mean_ = pca.mean_.copy()
        self.rank_ = rank
        self.oversampling_ = oversampling
        self.explained_variance_ratio_ = pca.explained_variance_ratio_.copy()
        self.is_fitted = True

        return self

    def score(self, X: np.ndarray) -> np.ndarray:
        """
        Compute reconstruction error as anomaly score.

        Args:
            X: Encoded vectors (n_samples, n_features).

        Returns:
            Euclidean norm of the residual per sample. Higher = more anomalous.
        """
        if not self.is_fitted:
            raise ModelError("Model must be fitted before scoring")

        X = self.validate_input(X)
        if X.shape[1] != self.n_features_:
            raise DimensionMismatchError(
                f"Vectors have {X.shape[1]} dimensions, model was fitted on {self.n_features_}"
            )

        # Project and reconstruct
        centered = X - self.mean_
        X_transformed = centered @ self.basis_.T
        X_reconstructed = X_transformed @ self.basis_

        return np.linalg.norm(centered - X_reconstructed, axis=1)

    def get_params(self) -> Dict[str, Any]:
        """Get model parameters."""
        return {
            "name": self.name,
            "seed": self.seed,
            "min_rank": self.min_rank,
            "oversampling_ratio": self.oversampling_ratio,
            "rank": self.rank_,
            "oversampling": self.oversampling_,
            "explained_variance": (
                float(sum(self.explained_variance_ratio_))
                if self.explained_variance_ratio_ is not None
                else None
            ),
        }

    @classmethod
    def from_params(
        cls,
        basis: np.ndarray,
        mean: np.ndarray,
        rank: int,
        oversampling: int,
        seed: int = 0,
    ) -> "PCAAnomalyDetector":
        """Rebuild a fitted scorer from persisted subspace parameters."""
        basis = np.asarray(basis, dtype=float)
        mean = np.asarray(mean, dtype=float)
        if basis.ndim != 2 or mean.ndim != 1 or basis.shape[1] != mean.shape[0]:
            raise ModelError(
                f"Corrupt subspace: basis {basis.shape} incompatible with mean {mean.shape}"
            )

        detector = cls(seed=seed)
        detector.basis_ = basis
        detector.mean_ = mean
        detector.rank_ = rank
        detector.oversampling_ = oversampling
        detector.is_fitted = True
        return detector


def create_pca_detector(config=None, seed: int = 0) -> PCAAnomalyDetector:
    """
    Factory function to create PCA detector with config.

    Args:
        config: PCAConfig (default: login_anomaly.config.default_config.pca).
        seed: Random seed.

    Returns:
        Configured PCAAnomalyDetector.
    """
    if config is None:
        from ..config import default_config
        config = default_config.pca

    return PCAAnomalyDetector(
        min_rank=getattr(config, "min_rank", 2),
        oversampling_ratio=getattr(config, "oversampling_ratio", 0.5),
        seed=seed,
    )
