"""
Trailing-window selection for attendance reports.

Clamps the requested number of days and filters attendance facts to the
window ending on the evaluation date.
"""

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Union
import numpy as np
import pandas as pd
from attendance_dashboard.config import Config

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class WindowSelection:
    """Effective trailing window: clamped day count and the first included date."""

    days: int
    cutoff: Optional[date] = None

    @property
    def active(self) -> bool:
        return self.days > 0

    @property
    def window_days(self) -> Optional[int]:
        """Day count as reported in payloads (None means all time)."""
        return self.days if self.active else None


def clamp_window_days(requested: Any, max_days: int = Config.MAX_WINDOW_DAYS) -> int:
    """
    Clamp a requested trailing-day count to [0, max_days].

    Integers are used as-is, floats are truncated and strings contribute
    their leading integer ("30", " 90 days"). Anything else, including
    None, NaN and negative values, means 0 (all time).

    Args:
        requested: Raw day count (query parameter, CLI value, config...)
        max_days: Upper bound of the clamp

    Returns:
        Non-negative day count
    """
    if requested is None or isinstance(requested, bool):
        return 0

    if isinstance(requested, (int, np.integer)):
        days = int(requested)
    elif isinstance(requested, (float, np.floating)):
        days = int(requested) if math.isfinite(requested) else 0
    else:
        match = _LEADING_INT.match(str(requested))
        days = int(match.group(1)) if match else 0

    return max(0, min(max_days, days))


def resolve_today(now: Optional[Union[date, datetime]] = None) -> date:
    """Calendar date of the evaluation instant (UTC system clock when not given)."""
    if now is None:
        return datetime.now(timezone.utc).date()
    if isinstance(now, datetime):
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.date()
    return now


def select_window(
    requested: Any,
    now: Optional[Union[date, datetime]] = None
) -> WindowSelection:
    """
    Determine the effective window for a report.

    Args:
        requested: Raw requested day count (see clamp_window_days)
        now: Evaluation instant; facts dated on or after now - days are kept

    Returns:
        WindowSelection with the clamped day count and cutoff date
    """
    days = clamp_window_days(requested)
    if days == 0:
        logger.info("Window: all time")
        return WindowSelection(days=0)

    cutoff = resolve_today(now) - timedelta(days=days)
    logger.info(f"Window: last {days} days (facts on or after {cutoff})")
    return WindowSelection(days=days, cutoff=cutoff)


def filter_to_window(facts: pd.DataFrame, selection: WindowSelection) -> pd.DataFrame:
    """
    Keep the attendance facts that fall inside the selected window.

    Args:
        facts: Attendance facts with a date column of datetime.date values
        selection: Window produced by select_window

    Returns:
        New DataFrame with the in-window facts (the input is not modified)
    """
    if not selection.active or facts.empty:
        return facts.copy()

    in_window = facts[facts["date"] >= selection.cutoff].copy()
    logger.info(f"Window kept {len(in_window)}/{len(facts)} attendance facts")
    return in_window
