"""
Workstation ownership tracking.

Pass 1 walks the batch month by month and records, for every computer,
the user with the most sessions that month (the monthly owner), noting
when a computer gets its first owner or changes hands. Pass 2 replays
every login in time order against the owner of its computer-month.

The ground truth is by default the audited batch itself, so a user who
dominates a computer for a whole month is never flagged on it that month.
Callers that need to catch such takeovers pass a separate ground-truth
batch.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..data.records import LoginFeatures
from ..reporting import ReportSink

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


class OwnershipChange(Enum):
    NEW = "new"
    CHANGE = "change"


@dataclass
class OwnershipState:
    """Month-by-month owners for one run. Owners are lowercase."""

    monthly_owner: Dict[Tuple[str, str], str] = field(default_factory=dict)
    last_known_owner: Dict[str, str] = field(default_factory=dict)

    def owner_for(self, computer: str, month: str) -> Optional[str]:
        return self.monthly_owner.get((computer, month))


@dataclass(frozen=True)
class OwnershipEvent:
    kind: OwnershipChange
    month: str
    computer: str
    owner: str
    previous: Optional[str] = None


@dataclass(frozen=True)
class OwnershipAnomaly:
    features: LoginFeatures
    user: str
    usual_owner: str


@dataclass
class OwnershipReport:
    state: OwnershipState
    events: List[OwnershipEvent]
    summary: List[Tuple[str, str]]
    anomalies: List[OwnershipAnomaly]


def dominant_user(features: Sequence[LoginFeatures]) -> str:
    """User with the most sessions; ties go to the first one seen."""
    counts = Counter(f.user for f in features)
    return counts.most_common(1)[0][0]


def _group(features: Sequence[LoginFeatures], key) -> Dict[str, List[LoginFeatures]]:
    groups: Dict[str, List[LoginFeatures]] = {}
    for f in features:
        groups.setdefault(key(f), []).append(f)
    return groups


def _month_label(month: str) -> str:
    return datetime.strptime(month, "%Y-%m").strftime("%B %Y")


class OwnershipTracker:
    """Two-pass monthly ownership consistency check."""

    def __init__(self, sink: Optional[ReportSink] = None):
        self.sink = sink

    def _emit(self, method: str, message: str) -> None:
        if self.sink is not None:
            getattr(self.sink, method)(message)

    def build_state(
        self, features: Sequence[LoginFeatures]
    ) -> Tuple[OwnershipState, List[OwnershipEvent]]:
        """
        Pass 1: monthly owners and the ownership change log.

        Args:
            features: Ground-truth batch.

        Returns:
            (state, events) with events in month order.
        """
        self._emit("title", "Chronological System Ownership Log")

        state = OwnershipState()
        events: List[OwnershipEvent] = []

        by_month = _group(features, lambda f: f.month)
        for month in sorted(by_month):
            self._emit("info", f"Month: {_month_label(month)}")

            has_changes = False
            for computer, logins in _group(by_month[month], lambda f: f.computer).items():
                owner = dominant_user(logins)
                owner_key = owner.lower()
                state.monthly_owner[(computer, month)] = owner_key

                previous = state.last_known_owner.get(computer)
                if previous == owner_key:
                    continue

                if previous is None:
                    events.append(OwnershipEvent(OwnershipChange.NEW, month, computer, owner))
                    self._emit("info", f"NEW: {computer} -> {owner}")
                else:
                    events.append(
                        OwnershipEvent(OwnershipChange.CHANGE, month, computer, owner, previous)
                    )
                    self._emit("warning", f"CHANGE: {computer} from {previous} to {owner}")

                state.last_known_owner[computer] = owner_key
                has_changes = True

            if not has_changes:
                self._emit("info", "No ownership changes")

        return state, events

    def summarize(self, state: OwnershipState) -> List[Tuple[str, str]]:
        """Final owner per computer, alphabetical by computer."""
        self._emit("title", "Final Ownership Summary")
        summary = sorted(state.last_known_owner.items())
        for computer, owner in summary:
            self._emit("info", f"{computer} : {owner}")
        return summary

    def audit(
        self, features: Sequence[LoginFeatures], state: OwnershipState
    ) -> List[OwnershipAnomaly]:
        """
        Pass 2: flag logins by someone other than the computer-month owner.

        Computer-months without an owner in ``state`` are not flagged.
        """
        self._emit("title", "Ownership Anomaly Detection")

        anomalies: List[OwnershipAnomaly] = []
        for f in sorted(features, key=lambda x: x.timestamp):
            user = f.user.lower()
            usual = state.owner_for(f.computer, f.month)
            if usual is not None and user != usual:
                anomalies.append(OwnershipAnomaly(features=f, user=user, usual_owner=usual))
                self._emit(
                    "anomaly",
                    f"ANOMALY: {user} on {f.computer} at "
                    f"{f.timestamp.strftime(TIMESTAMP_FORMAT)} (usual: {usual})",
                )

        if not anomalies:
            self._emit("success", "No ownership anomalies")
        return anomalies

    def detect(
        self,
        features: Sequence[LoginFeatures],
        ground_truth: Optional[Sequence[LoginFeatures]] = None,
    ) -> OwnershipReport:
        """
        Run both passes.

        Args:
            features: Batch to audit.
            ground_truth: Batch that defines monthly owners (default: ``features``).
        """
        baseline = features if ground_truth is None else ground_truth
        state, events = self.build_state(baseline)
        summary = self.summarize(state)
        anomalies = self.audit(features, state)

        logger.debug(
            f"Ownership: {len(state.monthly_owner)} computer-months, "
            f"{len(events)} ownership events, {len(anomalies)} anomalies"
        )
        return OwnershipReport(state=state, events=events, summary=summary, anomalies=anomalies)
