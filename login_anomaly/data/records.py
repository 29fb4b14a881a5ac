"""
Record types flowing through the detection engine.

LoginRecord is what the record source produces; LoginFeatures adds the
temporal features every detector works from; ScoredRecord pairs features
with the reconstruction-error score of one reporting run.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List


@dataclass(frozen=True)
class LoginRecord:
    """A single parsed login event."""

    user: str
    computer: str
    timestamp: datetime


@dataclass(frozen=True)
class LoginFeatures:
    """Login event with derived temporal features."""

    user: str
    computer: str
    timestamp: datetime

    # Minutes since midnight, in [0, 1440)
    time_of_day_minutes: float

    # Sunday = 0 ... Saturday = 6
    day_of_week: int

    @classmethod
    def from_record(cls, record: LoginRecord) -> "LoginFeatures":
        ts = record.timestamp
        minutes = ts.hour * 60 + ts.minute + ts.second / 60.0
        return cls(
            user=record.user,
            computer=record.computer,
            timestamp=ts,
            time_of_day_minutes=float(minutes),
            # datetime.weekday() is Monday = 0
            day_of_week=(ts.weekday() + 1) % 7,
        )

    @property
    def month(self) -> str:
        """Calendar month key, e.g. '2024-01'."""
        return self.timestamp.strftime("%Y-%m")


@dataclass(frozen=True)
class ScoredRecord:
    """Features paired with their anomaly score."""

    features: LoginFeatures
    score: float


def derive_features(records: Iterable[LoginRecord]) -> List[LoginFeatures]:
    """Derive LoginFeatures for every record, preserving order."""
    return [LoginFeatures.from_record(r) for r in records]
