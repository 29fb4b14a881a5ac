"""
Per-user time-of-day clustering.

Each user's login times (minutes since midnight) are clustered with
k-means; the largest cluster is the user's usual login time and every
login assigned elsewhere is reported. Users with too few logins or with
near-constant login times are skipped, since cluster assignment there is
noise rather than signal.
"""

import logging
import math
import warnings
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np
from sklearn.cluster import KMeans
from sklearn.exceptions import ConvergenceWarning

from ..data.records import LoginFeatures
from ..reporting import ReportSink
from ..utils.stats import sample_std

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


class ProfileStatus(Enum):
    CLUSTERED = "clustered"
    INSUFFICIENT_DATA = "insufficient_data"
    TOO_CONSISTENT = "too_consistent"
    INSUFFICIENT_CLUSTERS = "insufficient_clusters"
    FAILED = "failed"


@dataclass(frozen=True)
class TimeCluster:
    cluster_id: int
    centroid: float
    member_count: int


@dataclass
class UserTimeProfile:
    """Clustering outcome for one user."""

    user: str
    n_logins: int
    status: ProfileStatus
    std_minutes: float = 0.0
    k: Optional[int] = None
    clusters: Dict[int, TimeCluster] = field(default_factory=dict)
    usual_cluster: Optional[int] = None
    anomalies: List[LoginFeatures] = field(default_factory=list)

    @property
    def usual_time_minutes(self) -> Optional[float]:
        if self.usual_cluster is None:
            return None
        return self.clusters[self.usual_cluster].centroid


@dataclass
class TemporalReport:
    users: List[UserTimeProfile]

    @property
    def anomalies(self) -> List[LoginFeatures]:
        return [f for profile in self.users for f in profile.anomalies]


def min_required_logins(n: int, floor: int = 5) -> float:
    """max(floor, 2 * ln(n))."""
    if n <= 0:
        return float(floor)
    return max(float(floor), 2.0 * math.log(n))


def choose_k(n: int, min_clusters: int = 2, max_clusters: int = 3) -> int:
    """min(max_clusters, max(min_clusters, ceil(ln(n))))."""
    return min(max_clusters, max(min_clusters, int(math.ceil(math.log(n)))))


def format_minutes(minutes: float) -> str:
    """Minutes since midnight as HH:MM."""
    total = int(minutes)
    return f"{total // 60:02d}:{total % 60:02d}"


class TemporalClusteringAnalyzer:
    """Flags logins outside each user's dominant time-of-day cluster."""

    def __init__(
        self,
        min_logins: int = 5,
        min_std_minutes: float = 10.0,
        min_clusters: int = 2,
        max_clusters: int = 3,
        n_init: int = 10,
        seed: int = 0,
        sink: Optional[ReportSink] = None,
    ):
        self.min_logins = min_logins
        self.min_std_minutes = min_std_minutes
        self.min_clusters = min_clusters
        self.max_clusters = max_clusters
        self.n_init = n_init
        self.seed = seed
        self.sink = sink

    @classmethod
    def from_config(cls, config, seed: int = 0, sink: Optional[ReportSink] = None):
        return cls(
            min_logins=config.min_logins,
            min_std_minutes=config.min_std_minutes,
            min_clusters=config.min_clusters,
            max_clusters=config.max_clusters,
            n_init=config.n_init,
            seed=seed,
            sink=sink,
        )

    def _emit(self, method: str, message: str) -> None:
        if self.sink is not None:
            getattr(self.sink, method)(message)

    def _cluster(self, minutes: np.ndarray, k: int) -> np.ndarray:
        model = KMeans(n_clusters=k, n_init=self.n_init, random_state=self.seed)
        with warnings.catch_warnings():
            # Fewer distinct times than k; surfaces as fewer non-empty clusters
            warnings.simplefilter("ignore", ConvergenceWarning)
            return model.fit_predict(minutes.reshape(-1, 1))

    def analyze_user(self, user: str, logins: Sequence[LoginFeatures]) -> UserTimeProfile:
        """
        Cluster one user's login times.

        Args:
            user: User key.
            logins: The user's logins, in enumeration order.

        Returns:
            Profile with status and, when clustered, the anomalous logins.
        """
        n = len(logins)
        minutes = np.array([f.time_of_day_minutes for f in logins], dtype=float)
        std = sample_std(minutes)
        profile = UserTimeProfile(
            user=user, n_logins=n, status=ProfileStatus.INSUFFICIENT_DATA, std_minutes=std
        )

        if n < min_required_logins(n, self.min_logins):
            self._emit("warning", f"Insufficient data for {user} ({n} logins)")
            return profile

        if std < self.min_std_minutes:
            profile.status = ProfileStatus.TOO_CONSISTENT
            self._emit("info", f"Times too consistent for {user} (StdDev: {std:.2f})")
            return profile

        k = choose_k(n, self.min_clusters, self.max_clusters)
        profile.k = k
        self._emit("info", f"Using K={k} clusters")

        try:
            labels = self._cluster(minutes, k)
        except ValueError as e:
            profile.status = ProfileStatus.FAILED
            self._emit("error", f"Clustering failed for {user}: {e}")
            return profile

        # Counter keeps first-seen order, so size ties go to the earlier cluster
        counts = Counter(int(label) for label in labels)
        if len(counts) < 2:
            profile.status = ProfileStatus.INSUFFICIENT_CLUSTERS
            self._emit("warning", f"Insufficient clusters for {user}")
            return profile

        for cluster_id, count in counts.items():
            centroid = float(minutes[labels == cluster_id].mean())
            profile.clusters[cluster_id] = TimeCluster(cluster_id, centroid, count)

        usual = counts.most_common(1)[0][0]
        profile.usual_cluster = usual
        profile.status = ProfileStatus.CLUSTERED
        self._emit("info", f"Usual login time: {format_minutes(profile.usual_time_minutes)}")

        for f, label in zip(logins, labels):
            if int(label) != usual:
                profile.anomalies.append(f)
                self._emit("anomaly", f"ANOMALY: {f.timestamp.strftime(TIMESTAMP_FORMAT)}")

        if not profile.anomalies:
            self._emit("success", "No time anomalies")
        return profile

    def detect(self, features: Sequence[LoginFeatures]) -> TemporalReport:
        """Analyze every user, in user-name order."""
        self._emit("title", "Time-Based Anomaly Detection")

        by_user: Dict[str, List[LoginFeatures]] = {}
        for f in features:
            by_user.setdefault(f.user, []).append(f)

        profiles = []
        for user in sorted(by_user):
            self._emit("info", f"User: {user}")
            profiles.append(self.analyze_user(user, by_user[user]))

        logger.debug(
            f"Temporal: {sum(p.status is ProfileStatus.CLUSTERED for p in profiles)}"
            f"/{len(profiles)} users clustered"
        )
        return TemporalReport(users=profiles)
