"""Anomaly scoring models, thresholds and artifact storage."""

from .base import BaseAnomalyDetector, StaticDetector
from .pca_anomaly import PCAAnomalyDetector, choose_oversampling, choose_rank
from .threshold import Threshold, compute_threshold, threshold
from .store import AnomalyModel, FileModelStore, InMemoryModelStore, ModelStore

__all__ = [
    "BaseAnomalyDetector",
    "StaticDetector",
    "PCAAnomalyDetector",
    "choose_rank",
    "choose_oversampling",
    "Threshold",
    "compute_threshold",
    "threshold",
    "AnomalyModel",
    "ModelStore",
    "FileModelStore",
    "InMemoryModelStore",
]
