"""
CSV record source.

Reads login exports with a header row and four positional columns:
User, Computer, Time (HH:mm or H:mm), Date (yyyy-MM-dd). Columns are taken
by position and fields past the header width are ignored. Malformed rows
are dropped; a file with no surviving rows raises NoValidData.
"""

import logging
import warnings
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..exceptions import DataError, NoValidData
from .records import LoginRecord

logger = logging.getLogger(__name__)

COLUMNS = ["user", "computer", "time", "date"]

DATETIME_FORMAT = "%Y-%m-%d %H:%M"

TIME_PATTERN = r"\d{1,2}:\d{2}"
DATE_PATTERN = r"\d{4}-\d{2}-\d{2}"


def parse_login_timestamps(dates: pd.Series, times: pd.Series) -> pd.Series:
    """
    Combine date and time columns into timestamps.

    Hours may have one or two digits ('9:05' and '09:05' are both valid);
    dates must be zero-padded yyyy-MM-dd.

    Returns:
        Datetime series aligned with the inputs, NaT where either part
        is malformed.
    """
    dates = dates.fillna("").astype(str).str.strip()
    times = times.fillna("").astype(str).str.strip()

    well_formed = dates.str.fullmatch(DATE_PATTERN) & times.str.fullmatch(TIME_PATTERN)
    combined = (dates + " " + times.str.zfill(5)).where(well_formed)
    return pd.to_datetime(combined, format=DATETIME_FORMAT, errors="coerce")


def parse_login_datetime(date: str, time: str) -> Optional[datetime]:
    """Single-row form of :func:`parse_login_timestamps`; None if malformed."""
    parsed = parse_login_timestamps(pd.Series([date]), pd.Series([time])).iloc[0]
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def load_records(path: Union[str, Path]) -> List[LoginRecord]:
    """
    Load and validate login records from a CSV file.

    Args:
        path: CSV file with header and User, Computer, Time, Date columns.

    Returns:
        Valid records in file order.

    Raises:
        DataError: File missing, unreadable or with fewer than four columns.
        NoValidData: No row survived validation.
    """
    path = Path(path)
    if not path.is_file():
        raise DataError(f"File not found: {path}")

    try:
        with warnings.catch_warnings():
            # Fields past the header width are ignored
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                path,
                dtype=object,
                keep_default_na=False,
                skipinitialspace=True,
                engine="python",
                index_col=False,
            )
    except pd.errors.EmptyDataError as e:
        raise NoValidData(f"No valid data rows in {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise DataError(f"Data loading error in {path}: {e}") from e

    if df.shape[1] < len(COLUMNS):
        raise DataError(
            f"Expected at least {len(COLUMNS)} columns (User, Computer, Time, Date) "
            f"in {path}, found {df.shape[1]}"
        )

    df = df.iloc[:, : len(COLUMNS)].fillna("")
    df.columns = COLUMNS
    df["user"] = df["user"].astype(str).str.strip()
    df["computer"] = df["computer"].astype(str).str.strip()
    df["timestamp"] = parse_login_timestamps(df["date"], df["time"])

    valid = df[df["timestamp"].notna() & (df["user"] != "") & (df["computer"] != "")]
    records = [
        LoginRecord(user=user, computer=computer, timestamp=timestamp.to_pydatetime())
        for user, computer, timestamp in zip(valid["user"], valid["computer"], valid["timestamp"])
    ]

    dropped = len(df) - len(records)
    if dropped:
        logger.info(f"Dropped {dropped} malformed rows from {path}")

    if not records:
        raise NoValidData(f"No valid data rows in {path}")

    logger.debug(f"Loaded {len(records)} login records from {path}")
    return records
