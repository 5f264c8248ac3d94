import json

import pandas as pd
import pytest

from budgetboard.config import CurrencyFormat
from budgetboard.export import dashboard_metrics, export, format_currency, format_summary
from budgetboard.view import Selection, derive_dashboard


@pytest.mark.parametrize(
    "amount, expected",
    [
        (0, "₹0"),
        (999, "₹999"),
        (1200.5, "₹1,201"),
        (120000, "₹1,20,000"),
        (12345678, "₹1,23,45,678"),
        (-3000, "-₹3,000"),
        (-0.4, "₹0"),
        (float("nan"), "₹0"),
        (float("inf"), "₹0"),
    ],
)
def test_format_currency_indian(amount, expected):
    assert format_currency(amount) == expected


def test_format_currency_western_with_decimals():
    usd = CurrencyFormat(symbol="$", grouping="western", decimals=2)
    assert format_currency(1234567.891, usd) == "$1,234,567.89"
    assert format_currency(5, usd) == "$5.00"


def test_format_summary(may_ledger, config, today):
    results = derive_dashboard(may_ledger, Selection(month=pd.Period("2025-05", freq="M")), config, today=today)
    text = format_summary(results, config)
    assert "May 2025" in text
    assert "₹4,551" in text
    assert "Deficit" in text
    assert "Rent & Utilities (₹3,000)" in text
    assert "Travel" in text


def test_export_writes_csvs_and_json(tmp_path, may_ledger, config, today):
    results = derive_dashboard(may_ledger, Selection(month=pd.Period("2025-05", freq="M")), config, today=today)
    export(results, tmp_path)

    table = pd.read_csv(tmp_path / "transactions_table.csv")
    assert table.loc[0, "date"] == "Fixed Expense"
    assert table.loc[1, "date"] == "2025-05-20"

    series = pd.read_csv(tmp_path / "time_series.csv")
    assert series.loc[0, "bucket"] == "fixed"
    assert len(series) == 32

    assert len(pd.read_csv(tmp_path / "spend_by_category.csv")) == 4
    assert len(pd.read_csv(tmp_path / "budget_adherence.csv")) == 4

    data = json.loads((tmp_path / "dashboard.json").read_text(encoding="utf-8"))
    assert data == json.loads(json.dumps(dashboard_metrics(results), default=str))
    assert data["month"] == "2025-05"
    assert data["highest_category"] == {"category": "Rent & Utilities", "amount": 3000.0}
