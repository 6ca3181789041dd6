"""
Daily first-time vs. repeat classification.

A person's first attendance is a lifetime property: it is computed over the
full history even when the report only covers a trailing window.
"""

import logging
import pandas as pd

logger = logging.getLogger(__name__)

DAILY_COLUMNS = ["date", "event_name", "total", "first_time", "repeat"]


def build_first_occurrence_index(facts: pd.DataFrame) -> pd.Series:
    """
    Map every token to the earliest date it was seen.

    Args:
        facts: Full-history attendance facts (token, date)

    Returns:
        Series indexed by token with the first attendance date
    """
    if facts.empty:
        return pd.Series(dtype=object, name="first_date")

    index = facts.groupby("token")["date"].min().rename("first_date")
    logger.debug(f"First-occurrence index covers {len(index)} tokens")
    return index


def collapse_event_names(events: pd.DataFrame) -> pd.Series:
    """
    Pick one event name per date.

    When several rows share a date the lexicographically greatest name wins;
    rows without a name are ignored.

    Args:
        events: Event facts (event_date, event_name)

    Returns:
        Series indexed by date with the chosen event name
    """
    if events is None or events.empty:
        return pd.Series(dtype=object, name="event_name")

    named = events[events["event_name"].notna()]
    if named.empty:
        return pd.Series(dtype=object, name="event_name")

    names = (
        named.assign(event_name=named["event_name"].astype(str))
        .groupby("event_date")["event_name"]
        .max()
    )

    duplicates = int((named["event_date"].value_counts() > 1).sum())
    if duplicates:
        logger.warning(f"{duplicates} dates have more than one event name; kept the greatest")

    return names


def classify_daily(
    all_facts: pd.DataFrame,
    window_facts: pd.DataFrame,
    events: pd.DataFrame = None
) -> pd.DataFrame:
    """
    Build one row per attended date with first-time and repeat counts.

    Args:
        all_facts: Full-history attendance facts, used for first occurrences
        window_facts: Attendance facts inside the report window
        events: Optional event facts providing a name per date

    Returns:
        DataFrame with columns date, event_name, total, first_time, repeat,
        ascending by date. Only dates with attendance appear.

    Raises:
        ValueError: If window_facts has tokens that are not in all_facts
    """
    if window_facts.empty:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    first_dates = build_first_occurrence_index(all_facts)
    event_names = collapse_event_names(events)

    visits = window_facts[["token", "date"]].drop_duplicates().copy()
    visits["first_date"] = visits["token"].map(first_dates)

    unknown = visits["first_date"].isna()
    if unknown.any():
        raise ValueError(
            f"{visits.loc[unknown, 'token'].nunique()} tokens in the window are missing "
            f"from the full attendance history"
        )

    visits["is_first"] = visits["first_date"] == visits["date"]
    visits["is_repeat"] = visits["first_date"] < visits["date"]

    daily = (
        visits.groupby("date", sort=True)
        .agg(
            total=("token", "nunique"),
            first_time=("is_first", "sum"),
            repeat=("is_repeat", "sum"),
        )
        .reset_index()
    )
    daily[["total", "first_time", "repeat"]] = daily[["total", "first_time", "repeat"]].astype(int)

    names = daily["date"].map(event_names)
    daily["event_name"] = names.astype(object).where(names.notna(), None)
    daily = daily[DAILY_COLUMNS]

    logger.info(
        f"Classified {len(daily)} event days: "
        f"{daily['first_time'].sum()} first-time, {daily['repeat'].sum()} repeat attendances"
    )
    return daily
