"""Login records and the CSV record source."""

from .records import LoginRecord, LoginFeatures, ScoredRecord, derive_features
from .loader import load_records, parse_login_datetime

__all__ = [
    "LoginRecord",
    "LoginFeatures",
    "ScoredRecord",
    "derive_features",
    "load_records",
    "parse_login_datetime",
]
