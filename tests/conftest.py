import pandas as pd
import pytest

from budgetboard.config import DashboardConfig
from budgetboard.ingest import normalize_rows


def row(date="", category="Misc", amount="100", description=""):
    return {"Date": date, "Category": category, "Amount": amount, "Description": description}


@pytest.fixture
def make_frame():
    """Build a normalized frame from (date, category, amount[, description]) tuples.

    A date of "" makes a fixed expense.
    """

    def _make(*entries):
        rows = [row(*entry) if isinstance(entry, tuple) else entry for entry in entries]
        return normalize_rows(rows, reference_year=2025)

    return _make


@pytest.fixture
def config():
    return DashboardConfig(
        budgets={"Rent & Utilities": 3000, "Groceries": 500, "Eating Out": 1000},
        needs_wants={"Rent & Utilities": "Need", "Groceries": "Need", "Eating Out": "Want"},
        fixed_cost_category="Rent & Utilities",
        monthly_budget=4500,
    )


@pytest.fixture
def may_ledger(make_frame):
    return make_frame(
        ("", "Rent & Utilities", "₹3,000", "Rent"),
        ("05/01/2025", "Groceries", "120", "Market"),
        ("05/03/2025", "Eating Out", "450.50", "Dinner with friends"),
        ("05/03/2025", "Groceries", "80", "Bakery"),
        ("05/20/2025", "Travel", "900", "Train tickets"),
        ("04/28/2025", "Eating Out", "200", "Lunch"),
    )


@pytest.fixture
def today():
    return pd.Timestamp(2025, 5, 20)
