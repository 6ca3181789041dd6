"""
Summary scalars derived from the enriched daily series.
"""

import logging
from typing import Any, Dict
import pandas as pd
from attendance_dashboard.enrichment import rounded_mean

logger = logging.getLogger(__name__)


def find_peak_day(series: pd.DataFrame) -> Dict[str, Any]:
    """
    Return the row with the highest total.

    A forward scan keeps the first row that sets a new strict maximum, so the
    earliest date wins ties. With no positive row the peak day is None.
    """
    peak = {"day": None, "total": 0, "first_time": 0, "repeat": 0}
    for row in series.itertuples(index=False):
        if row.total > peak["total"]:
            peak = {
                "day": row.date,
                "total": int(row.total),
                "first_time": int(row.first_time),
                "repeat": int(row.repeat),
            }
    return peak


def summarize_series(
    series: pd.DataFrame,
    window_facts: pd.DataFrame,
    all_facts: pd.DataFrame
) -> Dict[str, Any]:
    """
    Reduce the enriched series to the dashboard summary.

    total_attendances sums daily uniques over event days only, so it is not
    interchangeable with the last cumulative value when zero rows exist.

    Args:
        series: Enriched daily rows in ascending date order
        window_facts: Attendance facts inside the report window
        all_facts: Full-history attendance facts

    Returns:
        Dictionary with from, to, event_days, total_attendances,
        avg_per_event_day, peak_day, peak_total, peak_repeat,
        peak_first_time, unique_people_in_window, unique_people_all_time
    """
    event_days = series[series["total"] > 0]
    total_attendances = int(event_days["total"].sum())
    peak = find_peak_day(series)

    summary = {
        "from": series["date"].iloc[0] if not series.empty else None,
        "to": series["date"].iloc[-1] if not series.empty else None,
        "event_days": len(event_days),
        "total_attendances": total_attendances,
        "avg_per_event_day": rounded_mean(total_attendances, len(event_days)),
        "peak_day": peak["day"],
        "peak_total": peak["total"],
        "peak_repeat": peak["repeat"],
        "peak_first_time": peak["first_time"],
        "unique_people_in_window": int(window_facts["token"].nunique()),
        "unique_people_all_time": int(all_facts["token"].nunique()),
    }

    logger.info(
        f"Summary: {summary['event_days']} event days, {total_attendances} attendances, "
        f"peak {summary['peak_day']} ({summary['peak_total']})"
    )
    return summary
