"""
Central configuration for training and reporting runs.

Every run-level parameter lives here with its default. Settings can be
overridden from a JSON file and from environment variables.

Usage:
    from login_anomaly.config import load_config
    config = load_config("config/settings.json")
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigError


@dataclass
class ThresholdConfig:
    """Configuration for the IQR-based decision threshold."""

    # Multiplier applied to the interquartile range above Q3
    iqr_multiplier: float = 1.5

    # Floor for the threshold, so small score spreads do not flag everything
    min_threshold: float = 0.8

    # Minimum number of scores needed to compute quartiles
    min_scores: int = 4


@dataclass
class PCAConfig:
    """Randomized PCA hyperparameters."""

    # Lower bound for the fitted rank; actual rank = max(min_rank, round(sqrt(dim)))
    min_rank: int = 2

    # Oversampling = ceil(oversampling_ratio * rank), stabilizes the randomized basis
    oversampling_ratio: float = 0.5


@dataclass
class ClusteringConfig:
    """Per-user time-of-day clustering parameters."""

    # Floor for minimum logins per user; actual = max(min_logins, 2 * ln(n))
    min_logins: int = 5

    # Users whose login times vary less than this (minutes) are not clustered
    min_std_minutes: float = 10.0

    # Cluster count k = min(max_clusters, max(min_clusters, ceil(ln(n))))
    min_clusters: int = 2
    max_clusters: int = 3

    # K-means restarts
    n_init: int = 10


@dataclass
class StoreConfig:
    """Location and naming of persisted model artifacts."""

    model_dir: Path = Path("models")

    # Artifacts are named <model_prefix><version><extension>
    model_prefix: str = "savedmodel"
    extension: str = ".joblib"


@dataclass
class Config:
    """Master configuration combining all settings."""

    threshold: ThresholdConfig = field(default_factory=ThresholdConfig)
    pca: PCAConfig = field(default_factory=PCAConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    store: StoreConfig = field(default_factory=StoreConfig)

    # Seed for randomized PCA and k-means
    seed: int = 0

    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def to_dict(self) -> dict:
        """Convert config to dictionary for logging."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Config":
        """Create config from a (possibly partial) nested dictionary."""
        sections = {
            "threshold": ThresholdConfig,
            "pca": PCAConfig,
            "clustering": ClusteringConfig,
            "store": StoreConfig,
        }
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key, value in d.items():
            if key in sections:
                if not isinstance(value, Mapping):
                    raise ConfigError(f"Section '{key}' must be a mapping")
                try:
                    kwargs[key] = sections[key](**value)
                except TypeError as e:
                    raise ConfigError(f"Invalid keys in section '{key}': {e}") from e
            else:
                kwargs[key] = value

        config = cls(**kwargs)
        config.store.model_dir = Path(config.store.model_dir)
        if config.log_file is not None:
            config.log_file = Path(config.log_file)
        return config


# Environment variable -> (section, attribute, type)
ENV_OVERRIDES = {
    "LOGIN_ANOMALY_MODEL_DIR": ("store", "model_dir", Path),
    "LOGIN_ANOMALY_MODEL_PREFIX": ("store", "model_prefix", str),
    "LOGIN_ANOMALY_IQR_MULTIPLIER": ("threshold", "iqr_multiplier", float),
    "LOGIN_ANOMALY_MIN_THRESHOLD": ("threshold", "min_threshold", float),
    "LOGIN_ANOMALY_SEED": (None, "seed", int),
}


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """
    Build the run configuration.

    Defaults are overlaid by the JSON settings file (if given) and then by
    environment variables.

    Args:
        path: Optional JSON settings file.
        environ: Environment mapping (default: os.environ).

    Returns:
        Populated Config.
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Settings file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                settings = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read settings file {path}: {e}") from e
        if not isinstance(settings, dict):
            raise ConfigError(f"Settings file {path} must contain a JSON object")
        config = Config.from_dict(settings)
    else:
        config = Config()

    environ = os.environ if environ is None else environ
    for var, (section, attr, cast) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            value = cast(raw)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {var}: {raw!r}") from e
        target = getattr(config, section) if section else config
        setattr(target, attr, value)

    return config


# Default configuration instance
default_config = Config()
