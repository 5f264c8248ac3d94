import pandas as pd
import pytest

from budgetboard.aggregate import (
    FIXED_KEY,
    HighestCategory,
    bucket_key,
    group_by_category,
    group_by_time,
    highest_category,
    needs_vs_wants,
    split_fixed,
    unique_categories,
)
from budgetboard.ingest import empty_frame


def test_group_by_category(make_frame):
    df = make_frame(
        ("05/01/2025", "Food", "100"),
        ("05/02/2025", "Food", "50"),
        ("", "Rent", "3000"),
    )
    assert group_by_category(df) == {"Food": 150.0, "Rent": 3000.0}


def test_needs_vs_wants_defaults_to_want(make_frame):
    df = make_frame(("", "Rent", "3000"), ("05/02/2025", "Dining", "200"))
    assert needs_vs_wants(df, {"Rent": "Need"}) == {"needs": 3000.0, "wants": 200.0}


def test_needs_vs_wants_matches_category_exactly(make_frame):
    df = make_frame(("05/02/2025", "rent", "100"))
    assert needs_vs_wants(df, {"Rent": "Need"}) == {"needs": 0.0, "wants": 100.0}


@pytest.mark.parametrize(
    "when, granularity, expected",
    [
        ("2025-05-01", "day", "2025-05-01"),
        ("2025-05-01", "month", "2025-5"),
        ("2025-12-31", "month", "2025-12"),
        ("2025-01-01", "week", "2025-W1"),
        ("2025-01-04", "week", "2025-W1"),
        ("2025-01-05", "week", "2025-W2"),
        ("2025-05-01", "week", "2025-W18"),
    ],
)
def test_bucket_key(when, granularity, expected):
    assert bucket_key(pd.Timestamp(when), granularity) == expected


def test_bucket_key_rejects_unknown_granularity():
    with pytest.raises(ValueError):
        bucket_key(pd.Timestamp(2025, 5, 1), "year")


def test_day_series_is_back_filled_for_the_month(make_frame):
    df = make_frame(("06/01/2025", "Groceries", "100"), ("06/15/2025", "Transit", "40"))
    series = group_by_time(df, "day")
    assert len(series) == 30
    assert sum(1 for v in series.values() if v == 0) == 28
    assert series["2025-06-01"] == 100.0
    assert series["2025-06-15"] == 40.0
    assert list(series) == sorted(series)


def test_fixed_expenses_go_to_reserved_key(make_frame):
    df = make_frame(
        ("", "Rent & Utilities", "3000"),
        ("", "Subscriptions", "500"),
        ("05/02/2025", "Groceries", "80"),
        ("05/09/2025", "Groceries", "20"),
    )
    series = group_by_time(df, "month")
    assert series == {FIXED_KEY: 3500.0, "2025-5": 100.0}
    assert list(series)[0] == FIXED_KEY


def test_week_series_is_in_date_order(make_frame):
    df = make_frame(
        ("05/20/2025", "Groceries", "10"),
        ("05/01/2025", "Groceries", "5"),
        ("05/02/2025", "Groceries", "5"),
    )
    assert group_by_time(df, "week") == {"2025-W18": 10.0, "2025-W21": 10.0}
    assert list(group_by_time(df, "week")) == ["2025-W18", "2025-W21"]


def test_day_series_without_dated_rows_uses_today(make_frame):
    df = make_frame(("", "Rent", "3000"))
    series = group_by_time(df, "day", today=pd.Timestamp(2025, 2, 10))
    assert series[FIXED_KEY] == 3000.0
    assert len(series) == 1 + 28
    assert "2025-02-28" in series


def test_empty_frame_degrades_to_zeros():
    df = empty_frame()
    assert group_by_category(df) == {}
    assert needs_vs_wants(df, {}) == {"needs": 0.0, "wants": 0.0}
    assert group_by_time(df, "month") == {}
    assert unique_categories(df) == []
    assert highest_category({}) == HighestCategory("None", 0.0)


def test_aggregation_is_idempotent_and_does_not_mutate(make_frame):
    df = make_frame(("", "Rent", "3000"), ("05/02/2025", "Dining", "200"), ("05/03/2025", "Dining", "50"))
    before = df.copy()
    needs_wants = {"Rent": "Need"}
    for granularity in ("day", "week", "month"):
        assert group_by_time(df, granularity) == group_by_time(df, granularity)
    assert group_by_category(df) == group_by_category(df)
    assert needs_vs_wants(df, needs_wants) == needs_vs_wants(df, needs_wants)
    pd.testing.assert_frame_equal(df, before)
    assert needs_wants == {"Rent": "Need"}


def test_split_fixed_leaves_series_untouched():
    series = {FIXED_KEY: 3000.0, "2025-05-01": 10.0, "2025-05-02": 0.0}
    fixed, items = split_fixed(series)
    assert fixed == 3000.0
    assert items == [("2025-05-01", 10.0), ("2025-05-02", 0.0)]
    assert FIXED_KEY in series
    assert split_fixed({"2025-5": 4.0}) == (0.0, [("2025-5", 4.0)])


def test_unique_categories(make_frame):
    df = make_frame(("", "Rent", "1"), ("05/01/2025", "Food", "2"), ("05/02/2025", "Rent", "3"))
    assert sorted(unique_categories(df)) == ["Food", "Rent"]


def test_highest_category_ties_go_to_first_seen():
    assert highest_category({"Food": 100.0, "Rent": 300.0, "Travel": 300.0}) == HighestCategory("Rent", 300.0)
    assert highest_category({"Food": 5.0}).category == "Food"
