"""
Attendance Dashboard

Aggregates attendance check-ins into first-time vs. repeat daily series,
rolling event-day averages and per-person attendance distributions.
"""

__version__ = "1.0.0"
