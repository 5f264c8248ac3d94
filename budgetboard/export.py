"""
export.py - Format derived dashboard values and export them to CSV / JSON.
"""

import json
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from budgetboard.aggregate import split_fixed
from budgetboard.config import CurrencyFormat, DashboardConfig


# ---------------------------------------------------------------------------
# Currency
# ---------------------------------------------------------------------------

def _group_indian(digits: str) -> str:
    """1234567 -> 12,34,567 (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: float, currency: Optional[CurrencyFormat] = None) -> str:
    """
    Format an amount for display, e.g. 120000 -> "₹1,20,000".

    Rounds half up to ``currency.decimals`` places; non-finite amounts show as 0.
    """
    currency = currency or CurrencyFormat()
    amount = float(amount)
    if not np.isfinite(amount):
        amount = 0.0
    quantum = Decimal(1).scaleb(-currency.decimals)
    rounded = Decimal(str(abs(amount))).quantize(quantum, rounding=ROUND_HALF_UP)
    whole, _, fraction = f"{rounded:f}".partition(".")
    if currency.grouping == "indian":
        whole = _group_indian(whole)
    else:
        whole = f"{int(whole):,}"
    text = f"{whole}.{fraction}" if fraction else whole
    sign = "-" if amount < 0 and rounded != 0 else ""
    return f"{sign}{currency.symbol}{text}"


# ---------------------------------------------------------------------------
# Text summary
# ---------------------------------------------------------------------------

def format_summary(results: dict, config: DashboardConfig) -> str:
    """Render the KPI cards and monthly stats as a plain-text block."""
    def fmt(value: float) -> str:
        return format_currency(value, config.currency)

    pace = results["daily_pace"]
    highest = results["highest_category"]
    surplus = results["surplus_deficit"]
    nw = results["needs_vs_wants"]

    status = "Surplus" if surplus >= 0 else "Deficit"
    if results["streak"] > 1 and surplus >= 0:
        status += f" (streak: {results['streak']} months)"
    today_note = "  *includes fixed expenses" if results["total_spent_today"] > 0 else ""

    lines = [
        f"Budget Dashboard - {results['month'].strftime('%B %Y')}",
        "-" * 60,
        f"  Spent this month:     {fmt(results['total_spent_this_month'])}",
        f"  Today:                {fmt(results['total_spent_today'])}{today_note}",
        f"  Yesterday:            {fmt(results['total_spent_yesterday'])}",
        f"  Highest category:     {highest.category} ({fmt(highest.amount)})",
        f"  Budget status:        {fmt(abs(surplus))} {status}",
        f"  Needs / Wants:        {fmt(nw['needs'])} / {fmt(nw['wants'])}",
        "",
        f"  {config.fixed_cost_category}: {fmt(pace['fixed_costs'])}   The rest: {fmt(pace['the_rest'])}",
        f"  Monthly budget:       {fmt(pace['monthly_budget'])} "
        f"({pace['budget_progress_percent']:.1f}% used)",
        f"  Avg spend per day:    {fmt(pace['avg_spend_per_day'])}",
        f"  Target spend per day: {fmt(pace['target_spend_per_day'])}",
        f"  Over / under target:  {pace['percent_over_under_target']:+.2f}%",
        f"  Allowed per day:      {fmt(pace['spend_per_day_allowed'])} "
        f"({pace['days_remaining']} days left)",
    ]

    over = [row for row in results["budget_adherence"] if row["is_over_pro_rated_budget"]]
    if over:
        lines.append("")
        lines.append("  Over pace:")
        for row in over:
            flag = "over budget" if row["is_over_budget"] else "over pro-rated budget"
            lines.append(
                f"    {row['category']}: {fmt(row['amount'])} of {fmt(row['budget'])} ({flag})"
            )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# CSV / JSON exports
# ---------------------------------------------------------------------------

def _j(v) -> str:
    return json.dumps(v, default=str, indent=2, ensure_ascii=False)


def _table_for_export(table: pd.DataFrame) -> pd.DataFrame:
    out = table.copy()
    out["date"] = [
        "Fixed Expense" if fixed else d.strftime("%Y-%m-%d")
        for d, fixed in zip(out["date"], out["is_fixed_expense"])
    ]
    return out


def export_csvs(results: dict, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    fixed_total, buckets = split_fixed(results["time_series"])
    series = pd.DataFrame(buckets, columns=["bucket", "amount"])
    if fixed_total:
        series = pd.concat(
            [pd.DataFrame([{"bucket": "fixed", "amount": fixed_total}]), series],
            ignore_index=True,
        )
    exports = {
        "transactions_table.csv": _table_for_export(results["table"]),
        "spend_by_category.csv": pd.DataFrame(
            list(results["spend_by_category"].items()), columns=["category", "amount"]
        ),
        "time_series.csv": series,
        "budget_adherence.csv": pd.DataFrame(
            results["budget_adherence"],
            columns=[
                "category", "amount", "budget", "pro_rated_budget",
                "percent_of_budget", "percent_of_pro_rated_budget",
                "is_over_budget", "is_over_pro_rated_budget",
            ],
        ),
    }
    for filename, df in exports.items():
        path = output_dir / filename
        df.to_csv(path, index=False)
        print(f"  Saved {filename} ({len(df)} rows)")


def dashboard_metrics(results: dict) -> dict:
    """Scalar metrics of a derived dashboard, ready for JSON."""
    highest = results["highest_category"]
    return {
        "month": str(results["month"]),
        "total_spent_this_month": results["total_spent_this_month"],
        "total_spent_today": results["total_spent_today"],
        "total_spent_yesterday": results["total_spent_yesterday"],
        "total_budget": results["total_budget"],
        "surplus_deficit": results["surplus_deficit"],
        "streak": results["streak"],
        "highest_category": {"category": highest.category, "amount": highest.amount},
        "needs_vs_wants": results["needs_vs_wants"],
        "spend_by_category": results["spend_by_category"],
        "time_series": results["time_series"],
        "daily_pace": results["daily_pace"],
    }


def export(results: dict, output_dir: str | Path) -> None:
    output_dir = Path(output_dir)
    print("Exporting results...")
    export_csvs(results, output_dir)
    (output_dir / "dashboard.json").write_text(_j(dashboard_metrics(results)), encoding="utf-8")
    print("  Saved dashboard.json")
    print(f"\nAll outputs written to: {output_dir.resolve()}")
