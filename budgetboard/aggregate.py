"""
aggregate.py - Group normalized transactions into dashboard totals.

Produces:
- Spend per category
- Needs vs. wants split
- Time-bucketed series (day / week / month) with a reserved "fixed" bucket
- Unique categories and the highest-spend category

All functions take the canonical transactions frame from ingest.py and return
new objects; the input frame and maps are never modified.
"""

from datetime import date
from typing import Mapping, NamedTuple, Optional

import numpy as np
import pandas as pd

from budgetboard.config import NEED, WANT


GRANULARITIES = ("day", "week", "month")
FIXED_KEY = "fixed"


class HighestCategory(NamedTuple):
    category: str
    amount: float


def check_granularity(granularity: str) -> str:
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity {granularity!r}; expected one of {GRANULARITIES}")
    return granularity


def total_spent(df: pd.DataFrame) -> float:
    return float(df["amount"].sum())


def group_by_category(df: pd.DataFrame) -> dict[str, float]:
    """Sum amounts per category (fixed expenses included)."""
    if df.empty:
        return {}
    totals = df.groupby("category", sort=False)["amount"].sum()
    return {str(category): float(total) for category, total in totals.items()}


def needs_vs_wants(df: pd.DataFrame, needs_wants: Mapping[str, str]) -> dict[str, float]:
    """
    Split total spend into Need and Want buckets.

    Categories missing from ``needs_wants`` count as Wants. Category names are
    matched exactly (case-sensitive).

    Returns:
        {"needs": float, "wants": float}
    """
    tags = df["category"].map(lambda category: needs_wants.get(category, WANT))
    needs = float(df.loc[tags == NEED, "amount"].sum())
    wants = float(df.loc[tags != NEED, "amount"].sum())
    return {"needs": needs, "wants": wants}


def bucket_key(when, granularity: str) -> str:
    """
    Return the time-bucket label for a date.

    day   -> "2025-05-01"
    week  -> "2025-W18"; ceil((day of year + weekday of Jan 1, Sunday=0) / 7).
             Close to, but not the same as, ISO-8601 week numbers.
    month -> "2025-5"
    """
    check_granularity(granularity)
    when = pd.Timestamp(when)
    if granularity == "day":
        return when.strftime("%Y-%m-%d")
    if granularity == "week":
        jan1 = pd.Timestamp(year=when.year, month=1, day=1)
        jan1_weekday = (jan1.dayofweek + 1) % 7
        week = int(np.ceil((when.dayofyear + jan1_weekday) / 7))
        return f"{when.year}-W{week}"
    return f"{when.year}-{when.month}"


def group_by_time(
    df: pd.DataFrame,
    granularity: str,
    today: Optional[date] = None,
) -> dict[str, float]:
    """
    Sum dated transactions per time bucket.

    Fixed expenses have no date, so their total goes under the reserved
    ``"fixed"`` key instead (only present when there are fixed expenses).
    For ``day`` granularity every day of the target month is back-filled with
    0.0 so the series has a continuous axis. The target month is the month of
    the first dated transaction, or of ``today`` when there is none.

    Args:
        df: Normalized transactions frame.
        granularity: "day", "week" or "month".
        today: Reference date for the empty case (default: date.today()).

    Returns:
        Dict of bucket key -> total, "fixed" first, buckets in date order.
    """
    check_granularity(granularity)
    fixed = df[df["is_fixed_expense"]]
    dated = df[~df["is_fixed_expense"] & df["date"].notna()]

    result: dict[str, float] = {}
    if not fixed.empty:
        result[FIXED_KEY] = total_spent(fixed)

    buckets: dict[str, float] = {}
    if not dated.empty:
        ordered = dated.sort_values("date", kind="stable")
        keys = ordered["date"].map(lambda d: bucket_key(d, granularity))
        totals = ordered["amount"].groupby(keys, sort=False).sum()
        buckets = {str(key): float(total) for key, total in totals.items()}

    if granularity == "day":
        anchor = dated["date"].iloc[0] if not dated.empty else pd.Timestamp(today or date.today())
        first_day = anchor.normalize().replace(day=1)
        for day in pd.date_range(first_day, periods=first_day.days_in_month, freq="D"):
            buckets.setdefault(day.strftime("%Y-%m-%d"), 0.0)
        buckets = dict(sorted(buckets.items()))

    result.update(buckets)
    return result


def split_fixed(series: Mapping[str, float]) -> tuple[float, list[tuple[str, float]]]:
    """Separate the reserved "fixed" total from the dated buckets of a series."""
    fixed = float(series.get(FIXED_KEY, 0.0))
    items = [(key, float(value)) for key, value in series.items() if key != FIXED_KEY]
    return fixed, items


def unique_categories(df: pd.DataFrame) -> list[str]:
    return df["category"].drop_duplicates().tolist()


def highest_category(spend_by_category: Mapping[str, float]) -> HighestCategory:
    """Category with the largest total; ties go to the first one seen."""
    best = None
    for category, amount in spend_by_category.items():
        if best is None or amount > best.amount:
            best = HighestCategory(category, float(amount))
    if best is None:
        return HighestCategory("None", 0.0)
    return best
