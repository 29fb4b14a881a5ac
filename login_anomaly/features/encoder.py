"""
Feature encoding for login events.

Each event becomes
    [one_hot(user) | one_hot(computer) | time_of_day_minutes | day_of_week]
min-max normalized per dimension. The vocabularies and normalization bounds
are learned once (at training time) and stored with the model, so that
prediction batches are encoded into exactly the same space.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..data.records import LoginFeatures
from ..exceptions import DataError, ModelError


@dataclass
class EncoderState:
    """Fitted vocabularies and per-dimension normalization bounds."""

    user_vocab: List[str] = field(default_factory=list)
    computer_vocab: List[str] = field(default_factory=list)
    minimums: np.ndarray = field(default_factory=lambda: np.zeros(0))
    maximums: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def n_features(self) -> int:
        return len(self.user_vocab) + len(self.computer_vocab) + 2


class FeatureEncoder:
    """
    One-hot + temporal encoder with min-max normalization.

    Unseen users or computers encode as an all-zero block. Constant
    dimensions normalize to 0. Values beyond the fitted bounds are left
    outside [0, 1] so that they surface as reconstruction error.
    """

    def __init__(self):
        self.state_ = None

    @property
    def is_fitted(self) -> bool:
        return self.state_ is not None

    @property
    def n_features(self) -> int:
        if self.state_ is None:
            raise ModelError("Encoder must be fitted before use")
        return self.state_.n_features

    def fit(self, features: Sequence[LoginFeatures]) -> "FeatureEncoder":
        """Learn vocabularies (first-seen order) and bounds from a batch."""
        if not features:
            raise DataError("Cannot encode an empty batch")

        user_vocab = list(dict.fromkeys(f.user for f in features))
        computer_vocab = list(dict.fromkeys(f.computer for f in features))
        self.state_ = EncoderState(user_vocab=user_vocab, computer_vocab=computer_vocab)

        raw = self._raw_matrix(features)
        self.state_.minimums = raw.min(axis=0)
        self.state_.maximums = raw.max(axis=0)
        return self

    def transform(self, features: Sequence[LoginFeatures]) -> np.ndarray:
        """
        Encode a batch with the fitted vocabularies and bounds.

        Returns:
            Array (n_samples, n_features).
        """
        if self.state_ is None:
            raise ModelError("Encoder must be fitted before transform")
        if not features:
            raise DataError("Cannot encode an empty batch")

        raw = self._raw_matrix(features)
        span = self.state_.maximums - self.state_.minimums
        constant = span == 0
        safe_span = np.where(constant, 1.0, span)

        normalized = (raw - self.state_.minimums) / safe_span
        normalized[:, constant] = 0.0
        return normalized

    def fit_transform(self, features: Sequence[LoginFeatures]) -> np.ndarray:
        return self.fit(features).transform(features)

    def _raw_matrix(self, features: Sequence[LoginFeatures]) -> np.ndarray:
        state = self.state_
        user_index = {u: i for i, u in enumerate(state.user_vocab)}
        computer_index = {c: i for i, c in enumerate(state.computer_vocab)}
        n_users = len(state.user_vocab)
        n_computers = len(state.computer_vocab)

        X = np.zeros((len(features), state.n_features), dtype=float)
        for row, f in enumerate(features):
            u = user_index.get(f.user)
            if u is not None:
                X[row, u] = 1.0
            c = computer_index.get(f.computer)
            if c is not None:
                X[row, n_users + c] = 1.0
            X[row, n_users + n_computers] = f.time_of_day_minutes
            X[row, n_users + n_computers + 1] = f.day_of_week
        return X

    def get_state(self) -> Dict:
        """Serializable encoder state for the model artifact."""
        if self.state_ is None:
            raise ModelError("Encoder must be fitted before export")
        return {
            "user_vocab": list(self.state_.user_vocab),
            "computer_vocab": list(self.state_.computer_vocab),
            "minimums": self.state_.minimums.tolist(),
            "maximums": self.state_.maximums.tolist(),
        }

    @classmethod
    def from_state(cls, state: Dict) -> "FeatureEncoder":
        encoder = cls()
        encoder.state_ = EncoderState(
            user_vocab=list(state["user_vocab"]),
            computer_vocab=list(state["computer_vocab"]),
            minimums=np.asarray(state["minimums"], dtype=float),
            maximums=np.asarray(state["maximums"], dtype=float),
        )
        if len(encoder.state_.minimums) != encoder.state_.n_features:
            raise ModelError(
                f"Corrupt encoder state: {len(encoder.state_.minimums)} bounds "
                f"for {encoder.state_.n_features} features"
            )
        return encoder


def encode(
    features: Sequence[LoginFeatures],
) -> Tuple[np.ndarray, Dict[str, List[str]], Tuple[np.ndarray, np.ndarray]]:
    """
    Encode a batch against its own vocabulary and bounds.

    Returns:
        (vectors, vocab, bounds): vocab maps "user" and "computer" to their
        first-seen vocabularies, bounds is (minimums, maximums) per dimension.
    """
    encoder = FeatureEncoder()
    vectors = encoder.fit_transform(features)
    state = encoder.state_
    vocab = {"user": list(state.user_vocab), "computer": list(state.computer_vocab)}
    return vectors, vocab, (state.minimums.copy(), state.maximums.copy())
