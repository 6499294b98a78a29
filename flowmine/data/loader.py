"""
Adapter from tabular event data to the event log model.

Column normalization belongs to the ingestion side; this module only expects
the canonical columns and converts rows into Event records.
"""
import time
import logging
from typing import Optional

import pandas as pd

from flowmine.data.event_log import Event, EventLog, REQUIRED_FIELDS
from flowmine.exceptions import EventLogError

logger = logging.getLogger(__name__)

# Trailing "Z" or a numeric UTC offset such as +02:00 or -0500
UTC_OFFSET_PATTERN = r"(?:Z|[+-]\d{2}:?\d{2})$"


def parse_timestamps(column: pd.Series) -> pd.Series:
    """
    Parse a timestamp column, keeping one timezone convention

    Values that all carry a UTC offset are normalized to UTC, so a log that
    crosses a DST change parses into comparable timestamps. Values without
    offsets stay naive.

    Args:
        column: Series of timestamp strings or datetimes

    Returns:
        Series of parsed timestamps
    """
    if pd.api.types.is_datetime64_any_dtype(column):
        return column

    has_offset = column.astype(str).str.strip().str.contains(UTC_OFFSET_PATTERN, regex=True)
    if has_offset.all():
        return pd.to_datetime(column, utc=True)
    if has_offset.any():
        raise EventLogError("Timestamp column mixes values with and without a UTC offset")
    return pd.to_datetime(column)


def events_from_dataframe(df: pd.DataFrame) -> EventLog:
    """
    Build an EventLog from a dataframe with canonical columns

    Args:
        df: Dataframe with case_id, activity, timestamp and resource columns

    Returns:
        EventLog preserving the dataframe row order
    """
    missing_columns = [col for col in REQUIRED_FIELDS if col not in df.columns]
    if missing_columns:
        raise EventLogError(f"Missing required columns: {missing_columns}")

    df_slim = df[list(REQUIRED_FIELDS)]

    null_rows = df_slim.isna().any(axis=1)
    if null_rows.any():
        first_bad = int(null_rows.to_numpy().nonzero()[0][0])
        raise EventLogError(f"Row {first_bad} has an empty required field")

    try:
        timestamps = parse_timestamps(df_slim["timestamp"])
    except (ValueError, TypeError) as e:
        raise EventLogError(f"Unparseable timestamp column: {e}") from e

    events = [
        Event(
            case_id=str(case_id),
            activity=str(activity),
            timestamp=ts.to_pydatetime(),
            resource=str(resource),
        )
        for case_id, activity, ts, resource in zip(
            df_slim["case_id"], df_slim["activity"], timestamps, df_slim["resource"]
        )
    ]
    return EventLog(events)


def load_event_log(data_path: str, nrows: Optional[int] = None) -> EventLog:
    """
    Load an event log from a CSV file

    Args:
        data_path: Path to CSV file with canonical columns
        nrows: Optional limit on rows read

    Returns:
        EventLog
    """
    logger.info(f"Loading data from {data_path}")
    start_time = time.time()

    try:
        df = pd.read_csv(data_path, dtype={"case_id": str, "activity": str, "resource": str}, nrows=nrows)
    except pd.errors.EmptyDataError as e:
        raise EventLogError(f"No data in {data_path}") from e
    log = events_from_dataframe(df)

    logger.info(f"Data loaded: {len(log):,} events, {len(log.cases):,} cases in {time.time() - start_time:.2f}s")
    return log
