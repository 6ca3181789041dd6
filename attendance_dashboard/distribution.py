"""
Distribution of people by number of event days attended.
"""

import logging
import pandas as pd
from attendance_dashboard.config import Config

logger = logging.getLogger(__name__)

DISTRIBUTION_COLUMNS = ["events", "people", "label"]


def build_distribution(window_facts: pd.DataFrame, cap: int = Config.DISTRIBUTION_CAP) -> pd.DataFrame:
    """
    Count people by how many distinct dates they attended in the window.

    Buckets at or above `cap` are merged into a single bucket whose events
    value is `cap` and whose label is "<cap>+". No overflow bucket is added
    when nobody reaches the cap.

    Args:
        window_facts: Attendance facts inside the report window
        cap: Smallest event count that goes into the overflow bucket

    Returns:
        DataFrame with columns events, people, label ascending by events
    """
    if window_facts.empty:
        return pd.DataFrame(columns=DISTRIBUTION_COLUMNS)

    per_person = window_facts.groupby("token")["date"].nunique()
    counts = per_person.value_counts().sort_index()

    buckets = pd.DataFrame({
        "events": counts.index.astype(int),
        "people": counts.to_numpy().astype(int),
    })
    buckets = buckets[buckets["events"] > 0]

    below = buckets[buckets["events"] < cap].copy()
    below["label"] = below["events"].astype(str)

    overflow = int(buckets.loc[buckets["events"] >= cap, "people"].sum())
    if overflow > 0:
        below = pd.concat(
            [below, pd.DataFrame([{"events": cap, "people": overflow, "label": f"{cap}+"}])],
            ignore_index=True,
        )
        logger.info(f"{overflow} people attended {cap}+ event days")

    distribution = below[DISTRIBUTION_COLUMNS].reset_index(drop=True)
    logger.info(f"Distribution has {len(distribution)} buckets covering {distribution['people'].sum()} people")
    return distribution
