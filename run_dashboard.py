#!/usr/bin/env python3
"""
Main orchestration script for the attendance dashboard.

This script:
1. Pulls attendance and event facts from Supabase (or local CSV exports)
2. Selects the trailing window
3. Classifies first-time vs. repeat attendance per event day
4. Adds cumulative totals and 7-event-day averages
5. Summarizes the series and builds the attendance distribution
6. Writes the report as JSON, CSV or HTML
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional
from attendance_dashboard.config import Config
from attendance_dashboard.data_extraction import extract_all_data, load_csv_data
from attendance_dashboard.database import SourceUnavailableError
from attendance_dashboard.engine import compute_dashboard
from attendance_dashboard.rendering import csv_filename, render_csv, render_html, render_json

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build the first-time vs. repeat attendance dashboard.")
    p.add_argument("--days", default=Config.DEFAULT_WINDOW_DAYS,
                   help="Trailing window in days (0 = all time, max 3650)")
    p.add_argument("--format", choices=["json", "csv", "html"], default="json", dest="fmt",
                   help="Output format (default: json)")
    p.add_argument("--output", type=Path,
                   help="Output file or directory (default: stdout). A directory gets the default file name.")
    p.add_argument("--attendance-csv", type=Path,
                   help="Read attendance facts (token,date) from this CSV instead of Supabase")
    p.add_argument("--events-csv", type=Path,
                   help="Read event names (event_date,event_name) from this CSV")
    p.add_argument("--today", type=date.fromisoformat,
                   help="Evaluation date for the window (YYYY-MM-DD, default: today UTC)")
    p.add_argument("--newest-first", action="store_true",
                   help="Write CSV rows in reverse-chronological order")
    p.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def default_filename(fmt: str, window_days: Optional[int]) -> str:
    if fmt == "csv":
        return csv_filename(window_days)
    stem = f"attendance_dashboard_last_{window_days}_days" if window_days else "attendance_dashboard"
    return f"{stem}.{fmt}"


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function."""
    args = parse_args(argv)

    # Configure logging (stderr keeps stdout free for the report)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    try:
        logger.info("=" * 60)
        logger.info("Starting Attendance Dashboard")
        logger.info("=" * 60)

        # Step 1: Extract facts
        if args.attendance_csv:
            logger.info(f"\n[Step 1] Loading facts from {args.attendance_csv}...")
            data = load_csv_data(args.attendance_csv, args.events_csv)
        else:
            logger.info("\n[Step 1] Extracting facts from Supabase...")
            data = extract_all_data()

        logger.info(f"  Attendance facts: {len(data['attendance'])}")
        logger.info(f"  Event facts: {len(data['events'])}")

        # Step 2: Aggregate
        logger.info("\n[Step 2] Aggregating attendance...")
        report = compute_dashboard(
            data["attendance"],
            data["events"],
            window_days=args.days,
            now=args.today,
        )

        # Step 3: Render
        logger.info(f"\n[Step 3] Rendering {args.fmt.upper()}...")
        if args.fmt == "csv":
            output = render_csv(report, newest_first=args.newest_first)
        elif args.fmt == "html":
            output = render_html(report)
        else:
            output = render_json(report)

        if args.output is None:
            sys.stdout.write(output)
            if not output.endswith("\n"):
                sys.stdout.write("\n")
        else:
            target = args.output
            if target.is_dir():
                target = target / default_filename(args.fmt, report.window_days)
            target.write_text(output, encoding="utf-8")
            logger.info(f"  Wrote {target}")

        summary = report.summary
        logger.info("\n" + "=" * 60)
        logger.info("Attendance Dashboard Completed Successfully!")
        logger.info("=" * 60)
        logger.info(f"  Range: {summary['from']} to {summary['to']}")
        logger.info(f"  Event days: {summary['event_days']}")
        logger.info(f"  Peak day: {summary['peak_day']} ({summary['peak_total']})")
        return 0

    except SourceUnavailableError as e:
        logger.error(f"\nAttendance source unavailable: {e}", exc_info=True)
        return 2
    except Exception as e:
        logger.error(f"\nDashboard failed with error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
