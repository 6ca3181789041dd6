import json
from datetime import date, timedelta

import numpy as np
import pandas as pd
import pytest

from attendance_dashboard.engine import DashboardReport, compute_dashboard
from conftest import make_events, make_facts


def test_first_time_and_repeat_scenario(scenario_facts):
    events = make_events(("2024-01-08", "Youth Night"))

    report = compute_dashboard(scenario_facts, events, now=date(2024, 2, 1))

    assert report.window_days is None
    payload = report.to_dict()
    assert payload["series"] == [
        {"date": "2024-01-01", "event_name": None, "total": 1, "first_time": 1, "repeat": 0,
         "cumulative": 1, "avg7": 1.0},
        {"date": "2024-01-08", "event_name": "Youth Night", "total": 2, "first_time": 1, "repeat": 1,
         "cumulative": 3, "avg7": 1.5},
    ]
    assert report.summary["unique_people_all_time"] == 2
    assert report.summary["from"] == "2024-01-01"
    assert report.summary["to"] == "2024-01-08"
    assert report.summary["peak_day"] == "2024-01-08"
    assert payload["distribution"] == [
        {"events": 1, "people": 1, "label": "1"},
        {"events": 2, "people": 1, "label": "2"},
    ]


def test_window_keeps_lifetime_first_occurrence(scenario_facts):
    report = compute_dashboard(scenario_facts, window_days=5, now=date(2024, 1, 10))

    assert report.window_days == 5
    assert [row["date"] for row in report.series] == ["2024-01-08"]
    assert report.series[0]["first_time"] == 1
    assert report.series[0]["repeat"] == 1
    assert report.summary["unique_people_in_window"] == 2
    assert report.summary["unique_people_all_time"] == 2
    assert report.to_dict()["distribution"] == [{"events": 1, "people": 2, "label": "1"}]


@pytest.mark.parametrize("requested, expected", [(-5, None), (99999, 3650), ("abc", None), ("30", 30)])
def test_window_days_echo_is_clamped(scenario_facts, requested, expected):
    report = compute_dashboard(scenario_facts, window_days=requested, now=date(2024, 1, 10))
    assert report.window_days == expected


def test_identical_inputs_give_identical_output():
    rng = np.random.RandomState(3)
    start = date(2023, 1, 1)
    facts = pd.DataFrame({
        "token": [f"p{n}" for n in rng.randint(0, 60, size=800)],
        "date": [start + timedelta(days=int(d)) for d in rng.randint(0, 400, size=800)],
    })
    original = facts.copy()

    first = compute_dashboard(facts, window_days=180, now=date(2024, 2, 1))
    second = compute_dashboard(facts, window_days=180, now=date(2024, 2, 1))

    assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())
    assert facts.equals(original)
    for row in first.series:
        assert row["first_time"] + row["repeat"] == row["total"]
    assert sum(b["people"] for b in first.distribution) == first.summary["unique_people_in_window"]


def test_empty_history():
    report = compute_dashboard(make_facts(), make_events(), window_days=30, now=date(2024, 1, 1))

    assert report == DashboardReport(
        window_days=30,
        summary={
            "from": None,
            "to": None,
            "event_days": 0,
            "total_attendances": 0,
            "avg_per_event_day": 0.0,
            "peak_day": None,
            "peak_total": 0,
            "peak_repeat": 0,
            "peak_first_time": 0,
            "unique_people_in_window": 0,
            "unique_people_all_time": 0,
        },
        series=[],
        distribution=[],
    )


def test_report_cannot_be_mutated(scenario_facts):
    report = compute_dashboard(scenario_facts, now=date(2024, 2, 1))

    with pytest.raises(TypeError):
        report.summary["event_days"] = 99
    with pytest.raises(TypeError):
        report.series[0]["total"] = 0
    with pytest.raises(TypeError):
        report.distribution[0]["people"] = 0
    with pytest.raises(AttributeError):
        report.series.append({})

    copy = report.to_dict()
    copy["series"][0]["total"] = 0
    assert report.series[0]["total"] == 1


def test_missing_attendance_is_an_error():
    with pytest.raises(ValueError, match="required"):
        compute_dashboard(None)


def test_missing_columns_are_an_error():
    with pytest.raises(ValueError, match="missing required columns"):
        compute_dashboard(pd.DataFrame({"person": ["A"], "date": [date(2024, 1, 1)]}))


def test_report_is_json_serializable(scenario_facts):
    payload = json.loads(json.dumps(compute_dashboard(scenario_facts).to_dict()))
    assert set(payload) == {"window_days", "summary", "series", "distribution"}
