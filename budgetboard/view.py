"""
view.py - Dashboard selection state and the derivation of every view.

``derive_dashboard`` is a pure function of (transactions, selection, config);
``DashboardState`` owns the user's selection and re-derives on every access.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Iterable, Optional

import pandas as pd

from budgetboard.aggregate import (
    check_granularity,
    group_by_category,
    group_by_time,
    highest_category,
    needs_vs_wants,
    total_spent,
    unique_categories,
)
from budgetboard.config import WANT, DashboardConfig
from budgetboard.metrics import (
    budget_adherence,
    consecutive_months_under_budget,
    daily_pace,
    filter_by_date_range,
    filter_by_day,
    month_end,
    month_period,
    month_start,
    should_highlight,
    surplus_deficit,
    total_budget,
)


# Categories shown in the budget adherence chart
ADHERENCE_CHART_SIZE = 8


@dataclass(frozen=True)
class Selection:
    month: pd.Period
    granularity: str = "day"
    categories: tuple[str, ...] = ()
    search: str = ""


def initial_month(df: pd.DataFrame, today: Optional[date] = None) -> pd.Period:
    """Month of the first dated transaction, else the current month."""
    dated = df.loc[df["date"].notna(), "date"]
    if not dated.empty:
        return month_period(dated.iloc[0])
    return month_period(today or date.today())


def filter_table(
    df: pd.DataFrame,
    categories: Iterable[str] = (),
    search: str = "",
) -> pd.DataFrame:
    """
    Apply the table filters in order: category set, then search text.

    An empty category set keeps every row. The search is a case-insensitive
    substring match against description or category.
    """
    out = df
    categories = list(categories)
    if categories:
        out = out[out["category"].isin(categories)]
    if search:
        needle = search.lower()
        mask = out["description"].str.lower().str.contains(needle, regex=False) | out[
            "category"
        ].str.lower().str.contains(needle, regex=False)
        out = out[mask]
    return out.copy()


def sort_table(df: pd.DataFrame) -> pd.DataFrame:
    """Fixed expenses first (by category, then description), then newest first."""
    fixed = df[df["is_fixed_expense"]].sort_values(["category", "description"], kind="stable")
    dated = df[~df["is_fixed_expense"]].sort_values("date", ascending=False, kind="stable")
    parts = [part for part in (fixed, dated) if not part.empty]
    if not parts:
        return df.iloc[0:0].copy()
    return pd.concat(parts).reset_index(drop=True)


def derive_dashboard(
    transactions: pd.DataFrame,
    selection: Selection,
    config: DashboardConfig,
    today: Optional[date] = None,
) -> dict:
    """
    Derive every dashboard value from transactions, selection and config.

    Args:
        transactions: Normalized transactions frame (never modified).
        selection: Selected month, granularity, category filter and search.
        config: Budgets, needs/wants tags and daily pace settings.
        today: Reference "today" (default: date.today()).

    Returns:
        Dict with keys:
            'month'                    - selected pd.Period
            'month_start', 'month_end' - bounds of the selected month
            'tx_this_month'            - month transactions incl. fixed expenses
            'tx_today', 'tx_yesterday' - single-day transactions
            'spend_by_category'        - {category: total}
            'categories'               - categories across all transactions
            'highest_category'         - HighestCategory
            'total_spent_this_month', 'total_spent_today',
            'total_spent_yesterday', 'total_budget', 'surplus_deficit'
            'needs_vs_wants'           - {"needs": .., "wants": ..}
            'time_series'              - {bucket: total} for the granularity
            'streak'                   - months under budget ending at the selection
            'budget_adherence'         - per-category budget comparison rows
            'daily_pace'               - average vs. target spend per day
            'table'                    - filtered, sorted transactions for display
    """
    today = pd.Timestamp(today or date.today()).normalize()
    yesterday = today - pd.Timedelta(days=1)
    start, end = month_start(selection.month), month_end(selection.month)

    tx_month = filter_by_date_range(transactions, start, end)
    tx_today = filter_by_day(transactions, today, today=today)
    tx_yesterday = filter_by_day(transactions, yesterday, today=today)

    spend_by_category = group_by_category(tx_month)
    spent_this_month = total_spent(tx_month)

    table = sort_table(filter_table(tx_month, selection.categories, selection.search))
    table["tag"] = [config.needs_wants.get(c, WANT) for c in table["category"]]
    table["highlight"] = [
        should_highlight(c, a, config.budgets, config.needs_wants)
        for c, a in zip(table["category"], table["amount"])
    ]

    return {
        "month": selection.month,
        "month_start": start,
        "month_end": end,
        "tx_this_month": tx_month,
        "tx_today": tx_today,
        "tx_yesterday": tx_yesterday,
        "spend_by_category": spend_by_category,
        "categories": unique_categories(transactions),
        "highest_category": highest_category(spend_by_category),
        "total_spent_this_month": spent_this_month,
        "total_spent_today": total_spent(tx_today),
        "total_spent_yesterday": total_spent(tx_yesterday),
        "total_budget": total_budget(config.budgets),
        "surplus_deficit": surplus_deficit(config.budgets, spent_this_month),
        "needs_vs_wants": needs_vs_wants(tx_month, config.needs_wants),
        "time_series": group_by_time(tx_month, selection.granularity, today=today),
        "streak": consecutive_months_under_budget(transactions, config.budgets, selection.month),
        "budget_adherence": budget_adherence(
            spend_by_category, config.budgets, today=today, limit=ADHERENCE_CHART_SIZE
        ),
        "daily_pace": daily_pace(
            spend_by_category,
            spent_this_month,
            config.monthly_budget,
            selection.month,
            config.fixed_cost_category,
            today=today,
        ),
        "table": table,
    }


class DashboardState:
    """Holds the user's selection over a fixed set of transactions."""

    def __init__(
        self,
        transactions: pd.DataFrame,
        config: DashboardConfig,
        today: Optional[date] = None,
    ):
        self.transactions = transactions
        self.config = config
        self.today = today
        self.selection = Selection(month=initial_month(transactions, today))

    def set_month(self, when) -> None:
        self.selection = replace(self.selection, month=month_period(when))

    def set_granularity(self, granularity: str) -> None:
        self.selection = replace(self.selection, granularity=check_granularity(granularity))

    def set_category_filter(self, categories: Iterable[str]) -> None:
        self.selection = replace(self.selection, categories=tuple(categories))

    def toggle_category(self, category: str) -> None:
        """Add ``category`` to the filter, or remove it if already selected."""
        current = self.selection.categories
        if category in current:
            updated = tuple(c for c in current if c != category)
        else:
            updated = current + (category,)
        self.selection = replace(self.selection, categories=updated)

    def set_search(self, text: str) -> None:
        self.selection = replace(self.selection, search=text)

    @property
    def derived(self) -> dict:
        return derive_dashboard(self.transactions, self.selection, self.config, today=self.today)


def last_twelve_months(today: Optional[date] = None) -> list[dict[str, str]]:
    """Month picker options, newest first: {"value": "2025-5", "label": "May 2025"}."""
    period = month_period(today or date.today())
    options = []
    for _ in range(12):
        options.append({"value": f"{period.year}-{period.month}", "label": period.strftime("%B %Y")})
        period -= 1
    return options
