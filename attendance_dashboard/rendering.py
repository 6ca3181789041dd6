"""
Output renderers for the attendance dashboard.

Formats a DashboardReport as JSON, CSV or a self-contained HTML page with
SVG charts. Renderers only present numbers computed by the engine.
"""

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape
from attendance_dashboard.config import Config
from attendance_dashboard.engine import DashboardReport

logger = logging.getLogger(__name__)

CSV_HEADER = ["date", "event_name", "repeat", "first_time", "total", "avg7_event_days", "cumulative"]
QUICK_WINDOWS = [30, 90, 365]

# Chart canvas (viewBox units)
CHART_WIDTH = 1100
CHART_PAD = 30


def render_json(report: DashboardReport) -> str:
    """Compact JSON document with window_days, summary, series and distribution."""
    return json.dumps(report.to_dict())


def render_csv(report: DashboardReport, newest_first: bool = False) -> str:
    """
    One CSV line per series row.

    Args:
        report: Engine output
        newest_first: Reverse-chronological order instead of ascending dates

    Returns:
        CSV text with a header line; empty averages and event names are blank
    """
    rows = report.to_dict()["series"]
    if newest_first:
        rows.reverse()
    df = pd.DataFrame(rows, columns=["date", "event_name", "repeat", "first_time", "total", "avg7", "cumulative"])
    df["avg7"] = df["avg7"].map(format_average)
    df = df.rename(columns={"avg7": "avg7_event_days"})[CSV_HEADER]
    return df.to_csv(index=False, lineterminator="\n")


def format_average(value: Any) -> str:
    """One-decimal average as text: whole numbers drop the decimal, missing is blank."""
    if value is None or pd.isna(value):
        return ""
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def csv_filename(window_days: Optional[int]) -> str:
    """Download name for the CSV export."""
    if window_days:
        return f"attendance_dashboard_last_{window_days}_days.csv"
    return "attendance_dashboard.csv"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _axis_labels(items: List[Dict[str, Any]], key: str, bar_width: float, height: int) -> List[Dict[str, Any]]:
    """Start, middle and end labels under a bar chart."""
    last = len(items) - 1
    positions = [0, len(items) // 2, last]
    return [
        {"x": CHART_PAD + i * bar_width, "y": height - 20, "text": items[i][key]}
        for i in positions
    ]


def build_attendance_chart(series: List[Dict[str, Any]], height: int = 280, bottom: int = 56) -> Optional[Dict[str, Any]]:
    """
    Geometry for the stacked repeat/first-time bar chart.

    Repeat attendance is drawn at the bottom of each bar with first-time
    attendance stacked on top. Returns None for an empty series.
    """
    if not series:
        return None

    peak = max(1, max(row["total"] for row in series))
    plot_height = height - CHART_PAD - bottom
    base_y = CHART_PAD + plot_height
    bar_width = (CHART_WIDTH - CHART_PAD * 2) / len(series)
    width = max(1, math.floor(bar_width - 2))

    bars = []
    for i, row in enumerate(series):
        repeat_height = _round_half_up(row["repeat"] / peak * plot_height)
        first_height = _round_half_up(row["first_time"] / peak * plot_height)
        label = f"{row['event_name']} ({row['date']})" if row["event_name"] else row["date"]
        bars.append({
            "x": f"{CHART_PAD + i * bar_width:.2f}",
            "width": width,
            "repeat_y": base_y - repeat_height,
            "repeat_height": repeat_height,
            "first_y": base_y - repeat_height - first_height,
            "first_height": first_height,
            "label": label,
            "row": row,
        })

    return {
        "width": CHART_WIDTH,
        "height": height,
        "pad": CHART_PAD,
        "plot_height": plot_height,
        "peak": peak,
        "bars": bars,
        "axis": _axis_labels(series, "date", bar_width, height),
    }


def build_distribution_chart(distribution: List[Dict[str, Any]], height: int = 240, bottom: int = 50) -> Optional[Dict[str, Any]]:
    """Geometry for the people-per-attendance-count bar chart."""
    if not distribution:
        return None

    most = max(1, max(bucket["people"] for bucket in distribution))
    plot_height = height - CHART_PAD - bottom
    base_y = CHART_PAD + plot_height
    bar_width = (CHART_WIDTH - CHART_PAD * 2) / len(distribution)
    width = max(1, math.floor(bar_width - 2))

    bars = []
    for i, bucket in enumerate(distribution):
        bar_height = _round_half_up(bucket["people"] / most * plot_height)
        bars.append({
            "x": f"{CHART_PAD + i * bar_width:.2f}",
            "y": base_y - bar_height,
            "width": width,
            "height": bar_height,
            "bucket": bucket,
        })

    return {
        "width": CHART_WIDTH,
        "height": height,
        "pad": CHART_PAD,
        "bars": bars,
        "axis": _axis_labels(distribution, "label", bar_width, height),
    }


def _thousands(value: Any) -> str:
    try:
        return f"{int(value or 0):,}"
    except (TypeError, ValueError):
        return "0"


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["thousands"] = _thousands
    env.filters["average"] = format_average
    return env


def render_html(
    report: DashboardReport,
    base_path: str = Config.DASHBOARD_BASE_PATH,
    generated_at: Optional[datetime] = None
) -> str:
    """
    Self-contained HTML dashboard.

    Args:
        report: Engine output
        base_path: URL path the quick links point at
        generated_at: Timestamp printed in the footer (defaults to now, UTC)

    Returns:
        HTML document text
    """
    days = report.window_days
    suffix = f"&days={days}" if days else ""
    links = {
        "quick": [{"label": f"Last {d}", "href": f"{base_path}?days={d}"} for d in QUICK_WINDOWS],
        "all_time": base_path,
        "json": f"{base_path}?format=json{suffix}",
        "csv": f"{base_path}?format=csv{suffix}",
    }

    generated_at = generated_at or datetime.now(timezone.utc)
    template = _template_env().get_template("dashboard.html.j2")
    payload = report.to_dict()
    html = template.render(
        window_days=days,
        summary=payload["summary"],
        attendance_chart=build_attendance_chart(payload["series"]),
        distribution_chart=build_distribution_chart(payload["distribution"]),
        table_rows=list(reversed(payload["series"])),
        links=links,
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
    logger.info(f"Rendered HTML dashboard ({len(report.series)} rows, {len(html)} bytes)")
    return html
