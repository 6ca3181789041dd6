"""
Running totals and event-day moving averages for the daily series.
"""

import logging
from collections import deque
from typing import Optional
import numpy as np
import pandas as pd
from attendance_dashboard.config import Config

logger = logging.getLogger(__name__)


def rounded_mean(total: int, count: int) -> float:
    """
    Mean of non-negative integers rounded half-up to one decimal place.

    Computed in integer arithmetic so that x.x5 boundaries always round up
    (e.g. 1/4 -> 0.3). An empty count gives 0.0.
    """
    if count <= 0:
        return 0.0
    return ((20 * total + count) // (2 * count)) / 10


def enrich_series(daily: pd.DataFrame, window: int = Config.ROLLING_EVENT_DAYS) -> pd.DataFrame:
    """
    Add cumulative totals and the moving average over recent event days.

    The average covers the last `window` rows with a positive total (not
    calendar days). Rows with a zero total get no average and leave the
    window unchanged.

    Args:
        daily: Classified daily rows in ascending date order
        window: Number of event days in the moving average

    Returns:
        Copy of daily with cumulative (int) and avg7 (float, NaN where
        total is 0) columns
    """
    df = daily.copy()
    recent = deque(maxlen=window)

    cumulative = []
    averages = []
    running = 0
    for total in df["total"].astype(int):
        running += total
        cumulative.append(running)

        avg: Optional[float] = None
        if total > 0:
            recent.append(total)
            avg = rounded_mean(sum(recent), len(recent))
        averages.append(np.nan if avg is None else avg)

    df["cumulative"] = pd.Series(cumulative, index=df.index, dtype="int64")
    df["avg7"] = pd.Series(averages, index=df.index, dtype="float64")

    logger.info(f"Enriched {len(df)} rows (cumulative total {running})")
    return df
