"""
Versioned model artifacts.

A trained model is a single AnomalyModel object persisted with joblib.
Versions are integers assigned as max(existing) + 1, which assumes a single
writer per store: concurrent training runs may race for the same number.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import joblib
import numpy as np

from ..exceptions import ModelError, ModelNotFoundError
from ..features.encoder import FeatureEncoder
from .pca_anomaly import PCAAnomalyDetector

logger = logging.getLogger(__name__)


@dataclass
class AnomalyModel:
    """Everything needed to encode and score a prediction batch."""

    version: int
    encoder_state: Dict[str, Any]
    basis: np.ndarray
    mean: np.ndarray
    rank: int
    oversampling: int
    seed: int = 0
    n_training_records: int = 0
    trained_at: datetime = field(default_factory=datetime.now)

    @property
    def n_features(self) -> int:
        return int(self.mean.shape[0])

    @classmethod
    def from_fitted(
        cls,
        version: int,
        encoder: FeatureEncoder,
        detector: PCAAnomalyDetector,
        n_training_records: int,
    ) -> "AnomalyModel":
        return cls(
            version=version,
            encoder_state=encoder.get_state(),
            basis=detector.basis_,
            mean=detector.mean_,
            rank=detector.rank_,
            oversampling=detector.oversampling_,
            seed=detector.seed,
            n_training_records=n_training_records,
        )

    def build_encoder(self) -> FeatureEncoder:
        return FeatureEncoder.from_state(self.encoder_state)

    def build_detector(self) -> PCAAnomalyDetector:
        return PCAAnomalyDetector.from_params(
            basis=self.basis,
            mean=self.mean,
            rank=self.rank,
            oversampling=self.oversampling,
            seed=self.seed,
        )


class ModelStore(ABC):
    """Key-value store of model artifacts keyed by version."""

    @abstractmethod
    def list_versions(self) -> List[int]:
        """Existing versions, ascending."""
        pass

    @abstractmethod
    def load(self, version: int) -> AnomalyModel:
        pass

    @abstractmethod
    def save(self, version: int, model: AnomalyModel) -> None:
        pass

    def location(self, version: int) -> str:
        """Human-readable location of a version, for reporting."""
        return f"version {version}"

    def next_version(self) -> int:
        versions = self.list_versions()
        return max(versions) + 1 if versions else 1


class InMemoryModelStore(ModelStore):
    """Store that keeps artifacts in a dictionary."""

    def __init__(self):
        self._models: Dict[int, AnomalyModel] = {}

    def list_versions(self) -> List[int]:
        return sorted(self._models)

    def load(self, version: int) -> AnomalyModel:
        if version not in self._models:
            raise ModelNotFoundError(f"Model version {version} not found")
        return self._models[version]

    def save(self, version: int, model: AnomalyModel) -> None:
        if version in self._models:
            raise ModelError(f"Model version {version} already exists")
        self._models[version] = model


class FileModelStore(ModelStore):
    """
    Store backed by a directory of ``<prefix><version><extension>`` files.

    Files whose suffix after the prefix is not an integer are ignored.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        prefix: str = "savedmodel",
        extension: str = ".joblib",
    ):
        self.directory = Path(directory)
        self.prefix = prefix
        self.extension = extension
        self._pattern = re.compile(rf"^{re.escape(prefix)}(\d+){re.escape(extension)}$")

    def path_for(self, version: int) -> Path:
        return self.directory / f"{self.prefix}{version}{self.extension}"

    def location(self, version: int) -> str:
        return str(self.path_for(version))

    def list_versions(self) -> List[int]:
        if not self.directory.is_dir():
            return []
        versions = []
        for path in self.directory.iterdir():
            match = self._pattern.match(path.name)
            if match and path.is_file():
                versions.append(int(match.group(1)))
        return sorted(versions)

    def load(self, version: int) -> AnomalyModel:
        path = self.path_for(version)
        if not path.is_file():
            raise ModelNotFoundError(f"Model file not found: {path}")

        try:
            model = joblib.load(path)
        except Exception as e:
            raise ModelError(f"Model load failed for {path}: {e}") from e

        if not isinstance(model, AnomalyModel):
            raise ModelError(
                f"Model load failed for {path}: unexpected artifact type {type(model).__name__}"
            )
        if model.version != version:
            raise ModelError(
                f"Model load failed for {path}: artifact declares version {model.version}"
            )
        return model

    def save(self, version: int, model: AnomalyModel) -> None:
        path = self.path_for(version)
        if path.exists():
            raise ModelError(f"Model file already exists: {path}")

        self.directory.mkdir(parents=True, exist_ok=True)
        try:
            joblib.dump(model, path)
        except OSError as e:
            raise ModelError(f"Model save failed for {path}: {e}") from e
        logger.debug(f"Saved model version {version} to {path}")


def create_store(config=None, directory: Optional[Path] = None) -> FileModelStore:
    """
    Factory function to create the file store from config.

    Args:
        config: StoreConfig (default: login_anomaly.config.default_config.store).
        directory: Overrides the configured model directory.
    """
    if config is None:
        from ..config import default_config
        config = default_config.store

    return FileModelStore(
        directory=directory or config.model_dir,
        prefix=config.model_prefix,
        extension=config.extension,
    )
