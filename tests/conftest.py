from datetime import date
from types import SimpleNamespace

import pandas as pd
import pytest


def make_facts(*pairs):
    """Attendance facts from (token, "YYYY-MM-DD") pairs."""
    return pd.DataFrame(
        [{"token": token, "date": date.fromisoformat(day)} for token, day in pairs],
        columns=["token", "date"],
    )


def make_events(*pairs):
    """Event facts from ("YYYY-MM-DD", name) pairs."""
    return pd.DataFrame(
        [{"event_date": date.fromisoformat(day), "event_name": name} for day, name in pairs],
        columns=["event_date", "event_name"],
    )


class FakeQuery:
    def __init__(self, client, table_name):
        self.client = client
        self.table_name = table_name
        self.start = 0
        self.end = None
        self.orders = []

    def select(self, columns):
        self.columns = columns
        return self

    def order(self, column, desc=False):
        self.orders.append(column)
        return self

    def range(self, start, end):
        self.start, self.end = start, end
        return self

    def execute(self):
        self.client.calls.append((self.table_name, tuple(self.orders), self.start, self.end))
        if self.table_name in self.client.failing:
            raise ConnectionError(f"{self.table_name} unreachable")
        rows = self.client.tables.get(self.table_name, [])
        if self.orders:
            rows = sorted(rows, key=lambda row: tuple(str(row.get(c) or "") for c in self.orders))
        return SimpleNamespace(data=rows[self.start:self.end + 1])


class FakeSupabaseClient:
    """Stands in for supabase.Client: serves rows from in-memory tables."""

    def __init__(self, tables, failing=()):
        self.tables = tables
        self.failing = set(failing)
        self.calls = []

    def table(self, table_name):
        return FakeQuery(self, table_name)


@pytest.fixture
def scenario_facts():
    return make_facts(("A", "2024-01-01"), ("A", "2024-01-08"), ("B", "2024-01-08"))
