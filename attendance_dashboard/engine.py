"""
Attendance aggregation engine.

Turns full-history attendance facts, event names and an optional trailing
window into the dashboard payload:

1. Select the window and filter the facts
2. Classify each attended date into first-time and repeat attendance
3. Enrich the daily series with cumulative totals and event-day averages
4. Reduce the series to summary scalars
5. Build the per-person attendance distribution

The engine is pure: it reads the facts it is given, never modifies them and
keeps no state between calls.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import pandas as pd
from attendance_dashboard.classification import classify_daily
from attendance_dashboard.data_extraction import REQUIRED_COLUMNS, validate_columns
from attendance_dashboard.distribution import build_distribution
from attendance_dashboard.enrichment import enrich_series
from attendance_dashboard.summary import summarize_series
from attendance_dashboard.windowing import filter_to_window, select_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardReport:
    """
    Structured engine output consumed by the JSON, CSV and HTML renderers.

    The report is read-only all the way down: the summary and every series
    or distribution row are mapping proxies held in tuples. Use to_dict() for
    plain, mutable copies.
    """

    window_days: Optional[int]
    summary: Mapping[str, Any]
    series: Tuple[Mapping[str, Any], ...] = ()
    distribution: Tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "summary", MappingProxyType(dict(self.summary)))
        object.__setattr__(self, "series", tuple(MappingProxyType(dict(row)) for row in self.series))
        object.__setattr__(self, "distribution", tuple(MappingProxyType(dict(row)) for row in self.distribution))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_days": self.window_days,
            "summary": dict(self.summary),
            "series": [dict(row) for row in self.series],
            "distribution": [dict(row) for row in self.distribution],
        }


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def series_to_records(series: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert enriched rows to plain JSON-ready dictionaries."""
    records = []
    for row in series.itertuples(index=False):
        records.append({
            "date": _iso(row.date),
            "event_name": None if pd.isna(row.event_name) else str(row.event_name),
            "total": int(row.total),
            "first_time": int(row.first_time),
            "repeat": int(row.repeat),
            "cumulative": int(row.cumulative),
            "avg7": None if pd.isna(row.avg7) else float(row.avg7),
        })
    return records


def distribution_to_records(distribution: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert distribution buckets to plain dictionaries."""
    return [
        {"events": int(row.events), "people": int(row.people), "label": str(row.label)}
        for row in distribution.itertuples(index=False)
    ]


def compute_dashboard(
    attendance: pd.DataFrame,
    events: Optional[pd.DataFrame] = None,
    window_days: Any = None,
    now: Optional[Union[date, datetime]] = None
) -> DashboardReport:
    """
    Compute the attendance dashboard for the requested window.

    Args:
        attendance: Full-history attendance facts (token, date as datetime.date).
            The whole history is needed even for windowed reports because
            first-time attendance is a lifetime property.
        events: Optional event facts (event_date, event_name)
        window_days: Requested trailing days; clamped to [0, 3650], 0/None = all time
        now: Evaluation instant for the window cutoff (defaults to the UTC clock)

    Returns:
        DashboardReport with summary, series, distribution and the effective window

    Raises:
        ValueError: If attendance facts are absent or lack required columns
    """
    if attendance is None:
        raise ValueError("Attendance facts are required to compute the dashboard")
    validate_columns(attendance, "attendances")
    if events is None:
        events = pd.DataFrame(columns=REQUIRED_COLUMNS["events"])
    validate_columns(events, "events")

    selection = select_window(window_days, now)
    window_facts = filter_to_window(attendance, selection)

    daily = classify_daily(attendance, window_facts, events)
    series = enrich_series(daily)
    summary = summarize_series(series, window_facts, attendance)
    distribution = build_distribution(window_facts)

    summary["from"] = _iso(summary["from"])
    summary["to"] = _iso(summary["to"])
    summary["peak_day"] = _iso(summary["peak_day"])

    return DashboardReport(
        window_days=selection.window_days,
        summary=summary,
        series=series_to_records(series),
        distribution=distribution_to_records(distribution),
    )
