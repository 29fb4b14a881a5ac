"""Ownership and time-of-day detectors."""

from .ownership import (
    OwnershipAnomaly,
    OwnershipChange,
    OwnershipEvent,
    OwnershipReport,
    OwnershipState,
    OwnershipTracker,
)
from .temporal import (
    ProfileStatus,
    TemporalClusteringAnalyzer,
    TemporalReport,
    TimeCluster,
    UserTimeProfile,
)

__all__ = [
    "OwnershipAnomaly",
    "OwnershipChange",
    "OwnershipEvent",
    "OwnershipReport",
    "OwnershipState",
    "OwnershipTracker",
    "ProfileStatus",
    "TemporalClusteringAnalyzer",
    "TemporalReport",
    "TimeCluster",
    "UserTimeProfile",
]
