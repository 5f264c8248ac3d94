"""
metrics.py - Point-in-time dashboard metrics.

Produces:
- Month / single-day transaction filters (fixed expenses handled specially)
- Surplus or deficit against the total budget
- Pro-rated budget adherence per category
- Streak of consecutive months under budget
- Daily pace stats (average vs. target spend per day)
"""

from datetime import date
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from budgetboard.aggregate import total_spent
from budgetboard.config import WANT


def _as_timestamp(when) -> pd.Timestamp:
    if isinstance(when, pd.Period):
        return when.to_timestamp()
    return pd.Timestamp(when).normalize()


def _today(today=None) -> pd.Timestamp:
    return _as_timestamp(today if today is not None else date.today())


def _safe_div(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    return float(result) if np.isfinite(result) else 0.0


def month_period(when) -> pd.Period:
    """Return the calendar month containing ``when`` as a monthly Period."""
    if isinstance(when, pd.Period):
        return when.asfreq("M")
    return pd.Period(_as_timestamp(when), freq="M")


def month_start(when) -> pd.Timestamp:
    return _as_timestamp(when).replace(day=1)


def month_end(when) -> pd.Timestamp:
    ts = _as_timestamp(when)
    return ts.replace(day=ts.days_in_month)


def filter_by_date_range(df: pd.DataFrame, start, end) -> pd.DataFrame:
    """Transactions dated within [start, end]; fixed expenses always pass."""
    start, end = _as_timestamp(start), _as_timestamp(end)
    dates = df["date"].dt.normalize()
    mask = df["is_fixed_expense"] | ((dates >= start) & (dates <= end))
    return df.loc[mask].copy()


def filter_by_day(df: pd.DataFrame, day, today: Optional[date] = None) -> pd.DataFrame:
    """
    Transactions dated on ``day``.

    Fixed expenses are only counted on the current day, so "today" includes
    the recurring costs while "yesterday" and older days do not.
    """
    day = _as_timestamp(day)
    include_fixed = bool(day == _today(today))
    dates = df["date"].dt.normalize()
    mask = (dates == day) | (df["is_fixed_expense"] & include_fixed)
    return df.loc[mask].copy()


def total_budget(budgets: Mapping[str, float]) -> float:
    return float(sum(budgets.values()))


def surplus_deficit(budgets: Mapping[str, float], spent: float) -> float:
    """Total budget minus spend; positive is a surplus, negative a deficit."""
    return total_budget(budgets) - spent


def month_progress(today: Optional[date] = None) -> float:
    """Fraction of the current month elapsed, counting today."""
    today = _today(today)
    return today.day / today.days_in_month


def budget_adherence(
    spend_by_category: Mapping[str, float],
    budgets: Mapping[str, float],
    progress: Optional[float] = None,
    today: Optional[date] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """Compare each category's spend against its full and pro-rated budget.

    The pro-rated budget scales the monthly budget by ``progress`` (default:
    how far ``today`` is into its month). Categories without a budget get 0.

    Returns a list of dicts sorted by spend descending, at most ``limit`` long.
    """
    if progress is None:
        progress = month_progress(today)
    rows = []
    for category, amount in spend_by_category.items():
        budget = float(budgets.get(category, 0.0))
        pro_rated = budget * progress
        rows.append(
            {
                "category": category,
                "amount": float(amount),
                "budget": budget,
                "pro_rated_budget": pro_rated,
                "percent_of_budget": _safe_div(amount, budget) * 100,
                "percent_of_pro_rated_budget": _safe_div(amount, pro_rated) * 100,
                "is_over_budget": amount > budget,
                "is_over_pro_rated_budget": amount > pro_rated,
            }
        )
    rows.sort(key=lambda r: -r["amount"])
    return rows[:limit] if limit else rows


def consecutive_months_under_budget(
    df: pd.DataFrame,
    budgets: Mapping[str, float],
    selected_month,
    max_months: int = 12,
) -> int:
    """
    Count consecutive months, walking back from ``selected_month``, whose
    spend (fixed expenses included) did not exceed the total budget.

    Stops at the first month over budget or after ``max_months`` months.
    """
    limit = total_budget(budgets)
    period = month_period(selected_month)
    streak = 0
    for _ in range(max_months):
        month_tx = filter_by_date_range(df, month_start(period), month_end(period))
        if total_spent(month_tx) > limit:
            break
        streak += 1
        period -= 1
    return streak


def daily_pace(
    spend_by_category: Mapping[str, float],
    month_spend: float,
    monthly_budget: float,
    selected_month,
    fixed_cost_category: str,
    today: Optional[date] = None,
) -> dict:
    """
    Average vs. target daily spend for the selected month.

    Spend in ``fixed_cost_category`` is spread over the whole month; the rest
    is averaged over the days elapsed so far. For a month other than the
    current one, the whole month counts as elapsed.

    Returns:
        Dict with fixed_costs, the_rest, days_in_month, days_elapsed,
        days_remaining, avg_spend_per_day, target_spend_per_day,
        percent_over_under_target, spend_per_day_allowed and
        budget_progress_percent. Division by zero yields 0.
    """
    today = _today(today)
    period = month_period(selected_month)
    days_in_month = period.days_in_month
    days_elapsed = today.day if period == month_period(today) else days_in_month
    days_remaining = days_in_month - days_elapsed

    fixed_costs = float(spend_by_category.get(fixed_cost_category, 0.0))
    the_rest = month_spend - fixed_costs

    if days_elapsed > 0:
        avg_spend_per_day = fixed_costs / days_in_month + the_rest / days_elapsed
    else:
        avg_spend_per_day = 0.0
    target_spend_per_day = _safe_div(monthly_budget, days_in_month)
    percent_over_under = _safe_div(target_spend_per_day - avg_spend_per_day, target_spend_per_day) * 100

    allowed = _safe_div(monthly_budget - month_spend, days_remaining)
    if allowed < 0:
        allowed = 0.0

    return {
        "monthly_spend": float(month_spend),
        "fixed_costs": fixed_costs,
        "the_rest": float(the_rest),
        "monthly_budget": float(monthly_budget),
        "days_in_month": days_in_month,
        "days_elapsed": days_elapsed,
        "days_remaining": days_remaining,
        "avg_spend_per_day": float(avg_spend_per_day),
        "target_spend_per_day": target_spend_per_day,
        "percent_over_under_target": percent_over_under,
        "spend_per_day_allowed": allowed,
        "budget_progress_percent": min(_safe_div(month_spend, monthly_budget) * 100, 100.0),
    }


def should_highlight(
    category: str,
    amount: float,
    budgets: Mapping[str, float],
    needs_wants: Mapping[str, str],
) -> bool:
    """A Want whose single amount exceeds a thirtieth of its monthly budget."""
    budget = budgets.get(category, 0.0)
    return needs_wants.get(category, WANT) == WANT and budget > 0 and amount > budget / 30
