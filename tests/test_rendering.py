import json
from datetime import date, datetime, timezone

from attendance_dashboard.engine import compute_dashboard
from attendance_dashboard.rendering import (
    CSV_HEADER,
    build_attendance_chart,
    build_distribution_chart,
    csv_filename,
    format_average,
    render_csv,
    render_html,
    render_json,
)
from conftest import make_events, make_facts

GENERATED_AT = datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)


def scenario_report(events=None, window_days=None):
    facts = make_facts(("A", "2024-01-01"), ("A", "2024-01-08"), ("B", "2024-01-08"))
    return compute_dashboard(facts, events, window_days=window_days, now=date(2024, 1, 10))


def test_render_json_round_trips_to_payload():
    report = scenario_report()
    assert json.loads(render_json(report)) == report.to_dict()


def test_render_csv_rows():
    report = scenario_report(make_events(("2024-01-08", "Games, Pizza")))
    lines = render_csv(report).splitlines()

    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[1] == "2024-01-01,,0,1,1,1,1"
    assert lines[2] == '2024-01-08,"Games, Pizza",1,1,2,1.5,3'


def test_render_csv_newest_first():
    lines = render_csv(scenario_report(), newest_first=True).splitlines()
    assert [line.split(",")[0] for line in lines[1:]] == ["2024-01-08", "2024-01-01"]


def test_render_csv_empty_series_is_header_only():
    report = compute_dashboard(make_facts())
    assert render_csv(report).splitlines() == [",".join(CSV_HEADER)]


def test_format_average():
    assert format_average(1.0) == "1"
    assert format_average(12.3) == "12.3"
    assert format_average(None) == ""


def test_csv_filename():
    assert csv_filename(None) == "attendance_dashboard.csv"
    assert csv_filename(90) == "attendance_dashboard_last_90_days.csv"


def test_attendance_chart_stacks_repeat_under_first_time():
    chart = build_attendance_chart([
        {"date": "2024-01-01", "event_name": "Kickoff", "total": 4, "first_time": 3, "repeat": 1,
         "cumulative": 4, "avg7": 4.0},
    ])

    bar = chart["bars"][0]
    assert chart["peak"] == 4
    assert chart["plot_height"] == 194
    assert bar["repeat_height"] == 49
    assert bar["first_height"] == 146
    assert bar["repeat_y"] == 224 - 49
    assert bar["first_y"] == 224 - 49 - 146
    assert bar["label"] == "Kickoff (2024-01-01)"
    assert [label["text"] for label in chart["axis"]] == ["2024-01-01"] * 3


def test_charts_are_skipped_without_data():
    assert build_attendance_chart([]) is None
    assert build_distribution_chart([]) is None


def test_render_html_escapes_event_names():
    report = scenario_report(make_events(("2024-01-08", "<b>Bash</b>")), window_days=30)
    html = render_html(report, generated_at=GENERATED_AT)

    assert "last 30 days" in html
    assert "&lt;b&gt;Bash&lt;/b&gt;" in html
    assert "<b>Bash</b>" not in html
    assert "/api/dashboard?format=csv&amp;days=30" in html
    assert "Generated 2024-02-01 12:00 UTC" in html


def test_render_html_orders_table_newest_first():
    html = render_html(scenario_report(), generated_at=GENERATED_AT)
    table = html[html.index("<tbody>"):]
    assert table.index("2024-01-08") < table.index("2024-01-01")


def test_render_html_empty_report():
    html = render_html(compute_dashboard(make_facts()), generated_at=GENERATED_AT)

    assert "No attendance data yet." in html
    assert "No per-person distribution data yet." in html
    assert "No data yet." in html
    assert "all time" in html
