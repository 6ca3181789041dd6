"""
Data extraction for attendance and event facts.

Pulls facts from Supabase tables or local CSV exports, validates their
columns and rejects malformed rows before they reach the aggregation engine.
"""

import logging
from pathlib import Path
from typing import Optional, Union
import pandas as pd
from supabase import Client
from attendance_dashboard.config import Config
from attendance_dashboard.database import (
    SourceUnavailableError,
    get_supabase_client,
    query_table_to_dataframe,
)

logger = logging.getLogger(__name__)


# Required columns for each fact table
REQUIRED_COLUMNS = {
    "attendances": ["token", "date"],
    "events": ["event_date", "event_name"],
}


def validate_columns(df: pd.DataFrame, table_name: str) -> None:
    """
    Validate that DataFrame contains all required columns.

    Args:
        df: DataFrame to validate
        table_name: Logical name of the table ("attendances" or "events")

    Raises:
        ValueError: If required columns are missing
    """
    if table_name not in REQUIRED_COLUMNS:
        logger.warning(f"No required columns defined for {table_name}, skipping validation")
        return

    required = REQUIRED_COLUMNS[table_name]
    missing = [col for col in required if col not in df.columns]

    if missing:
        raise ValueError(
            f"Table {table_name} is missing required columns: {', '.join(missing)}. "
            f"Found columns: {', '.join(map(str, df.columns))}"
        )

    logger.info(f"Table {table_name} validation passed ({len(df)} rows)")


def _parse_dates(values: pd.Series) -> pd.Series:
    """
    Parse ISO dates/timestamps to datetime.date, leaving None for unparseable values.

    Timestamps with a UTC offset are converted to UTC before the time is
    dropped; naive values are taken as UTC already.
    """
    parsed = pd.to_datetime(values, errors="coerce", format="ISO8601", utc=True)
    return parsed.dt.date.where(parsed.notna(), None)


def normalize_attendance_facts(df: pd.DataFrame) -> pd.DataFrame:
    """
    Coerce raw attendance rows to (token: str, date: datetime.date).

    Args:
        df: Raw attendance rows with token and date columns

    Returns:
        DataFrame with exactly the token and date columns

    Raises:
        ValueError: If any row has a missing token or an unparseable date
    """
    validate_columns(df, "attendances")

    facts = df[["token", "date"]].copy()
    tokens = facts["token"].astype("string").str.strip()
    dates = _parse_dates(facts["date"])

    bad = (tokens.isna() | tokens.eq("").fillna(False) | dates.isna()).astype(bool)
    if bad.any():
        examples = facts[bad].head(3).to_dict("records")
        raise ValueError(
            f"{int(bad.sum())} attendance rows have a missing token or an unparseable date "
            f"(e.g. {examples})"
        )

    facts["token"] = tokens.astype(str).astype(object)
    facts["date"] = dates.astype(object)
    facts = facts.reset_index(drop=True)

    logger.info(f"Normalized {len(facts)} attendance facts ({facts['token'].nunique()} tokens)")
    return facts


def normalize_event_facts(df: pd.DataFrame) -> pd.DataFrame:
    """
    Coerce raw event rows to (event_date: datetime.date, event_name: str | None).

    Rows without a name are kept; the daily classifier ignores them when
    picking a name for the date.

    Raises:
        ValueError: If any row has an unparseable event_date
    """
    validate_columns(df, "events")

    events = df[["event_date", "event_name"]].copy()
    dates = _parse_dates(events["event_date"])

    bad = dates.isna()
    if bad.any():
        raise ValueError(f"{int(bad.sum())} event rows have an unparseable event_date")

    names = events["event_name"].astype("string")
    events["event_date"] = dates.astype(object)
    events["event_name"] = names.astype(object).where(names.notna(), None)
    events = events.reset_index(drop=True)

    logger.info(f"Normalized {len(events)} event facts")
    return events


def _empty_table(table_name: str) -> pd.DataFrame:
    return pd.DataFrame(columns=REQUIRED_COLUMNS[table_name])


def extract_attendance_data(client: Client) -> pd.DataFrame:
    """
    Extract all attendance facts from the attendance table.

    Args:
        client: Supabase client

    Returns:
        Normalized attendance facts (full history)
    """
    logger.info(f"Extracting attendance data from {Config.ATTENDANCE_TABLE}")
    df = query_table_to_dataframe(client, Config.ATTENDANCE_TABLE, "token,date", order=["token", "date"])
    if df.empty:
        df = _empty_table("attendances")
    return normalize_attendance_facts(df)


def extract_event_data(client: Client) -> pd.DataFrame:
    """
    Extract event names per date from the events table.

    Args:
        client: Supabase client

    Returns:
        Normalized event facts
    """
    logger.info(f"Extracting event data from {Config.EVENTS_TABLE}")
    df = query_table_to_dataframe(client, Config.EVENTS_TABLE, "event_date,event_name", order=["event_date", "event_name"])
    if df.empty:
        df = _empty_table("events")
    return normalize_event_facts(df)


def extract_all_data(client: Client = None) -> dict:
    """
    Extract all required data from Supabase.

    Args:
        client: Optional Supabase client (creates new one if not provided)

    Returns:
        Dictionary containing:
        - attendance: normalized attendance facts
        - events: normalized event facts
    """
    if client is None:
        client = get_supabase_client()

    data = {
        "attendance": extract_attendance_data(client),
        "events": extract_event_data(client),
    }

    logger.info("All data extraction completed successfully")
    return data


def load_csv_data(
    attendance_path: Union[str, Path],
    events_path: Optional[Union[str, Path]] = None
) -> dict:
    """
    Load attendance (and optionally event) facts from CSV exports.

    Args:
        attendance_path: CSV with token,date columns
        events_path: Optional CSV with event_date,event_name columns

    Returns:
        Dictionary with the same keys as extract_all_data

    Raises:
        SourceUnavailableError: If a file does not exist or cannot be read
    """
    def read(path: Union[str, Path]) -> pd.DataFrame:
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Error reading {path}: {e}")
            raise SourceUnavailableError(f"Could not read {path}: {e}") from e
        logger.info(f"Read {len(df)} rows from {path}")
        return df

    attendance = normalize_attendance_facts(read(attendance_path))
    if events_path is None:
        events = normalize_event_facts(_empty_table("events"))
    else:
        events = normalize_event_facts(read(events_path))

    return {"attendance": attendance, "events": events}
