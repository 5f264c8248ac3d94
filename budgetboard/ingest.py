"""
ingest.py - Load ledger rows and normalize them into canonical transactions.

Raw rows carry string fields Date, Category, Amount and Description. A row
with a blank Date is a fixed (recurring) expense that belongs to every month.

Standard schema of the normalized frame:
    date             - pd.Timestamp at midnight, NaT for fixed expenses
    category         - str
    amount           - float (always positive)
    description      - str
    is_fixed_expense - bool
"""

import re
import sys
from datetime import date
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd


COLUMNS = ["date", "category", "amount", "description", "is_fixed_expense"]
RAW_FIELDS = ("Date", "Category", "Amount", "Description")
NO_DESCRIPTION = "No description"

# Tried after MM/DD/YYYY and "May N" fail
FALLBACK_DATE_FORMATS = ["%Y-%m-%d", "%Y/%m/%d", "%m-%d-%Y"]

_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_MAY_RE = re.compile(r"^May\s+(\d{1,2})$")
_AMOUNT_NOISE_RE = re.compile(r"[^0-9.]")
_YEAR_RE = re.compile(r"\d{4}")

RawRows = Union[pd.DataFrame, Iterable[Mapping[str, object]]]


def _clean(value) -> str:
    """Return a trimmed string, treating None/NaN as blank."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def _parse_amount(value: str) -> Optional[float]:
    """Strip currency decoration and parse; None when not a positive number."""
    cleaned = _AMOUNT_NOISE_RE.sub("", value)
    try:
        amount = float(cleaned)
    except ValueError:
        return None
    if not np.isfinite(amount) or amount <= 0:
        return None
    return amount


def _parse_slash_date(value: str) -> Optional[pd.Timestamp]:
    match = _SLASH_DATE_RE.match(value)
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    if year < 100:
        year += 2000
    try:
        return pd.Timestamp(year=year, month=month, day=day)
    except ValueError:
        return None


def _parse_may_date(value: str, reference_year: int) -> Optional[pd.Timestamp]:
    match = _MAY_RE.match(value)
    if not match:
        return None
    try:
        return pd.Timestamp(year=reference_year, month=5, day=int(match.group(1)))
    except ValueError:
        return None


def _parse_any_date(value: str) -> Optional[pd.Timestamp]:
    parsed = None
    for fmt in FALLBACK_DATE_FORMATS:
        try:
            parsed = pd.to_datetime(value, format=fmt)
            break
        except (ValueError, TypeError):
            continue
    if parsed is None:
        # The general parser fills a missing year with 0001 and turns words
        # like "today" into the run date; require an explicit year
        if not _YEAR_RE.search(value):
            return None
        try:
            parsed = pd.to_datetime(value)
        except (ValueError, TypeError, OverflowError):
            return None
    if pd.isna(parsed):
        return None
    # Keep only the calendar date; time of day and UTC offset are dropped
    return pd.Timestamp(year=parsed.year, month=parsed.month, day=parsed.day)


def _parse_date(value: str, reference_year: int) -> Optional[pd.Timestamp]:
    """Parse a non-blank date string; None when no format yields a valid date.

    Order: MM/DD/YYYY (or MM/DD/YY meaning 20YY), then "May N" in
    ``reference_year``, then the fallback formats and the general parser.
    """
    if _SLASH_DATE_RE.match(value):
        return _parse_slash_date(value)
    if _MAY_RE.match(value):
        return _parse_may_date(value, reference_year)
    return _parse_any_date(value)


def empty_frame() -> pd.DataFrame:
    """Return an empty transactions frame with the standard schema."""
    return pd.DataFrame(
        {
            "date": pd.Series(dtype="datetime64[ns]"),
            "category": pd.Series(dtype=object),
            "amount": pd.Series(dtype=float),
            "description": pd.Series(dtype=object),
            "is_fixed_expense": pd.Series(dtype=bool),
        }
    )


def normalize_rows(rows: RawRows, reference_year: Optional[int] = None) -> pd.DataFrame:
    """
    Turn raw ledger rows into the canonical transactions frame.

    Rows that are entirely blank, have no category, or whose amount does not
    clean up to a positive number are dropped. A blank Date marks a fixed
    expense. A Date that cannot be parsed also becomes a fixed expense so the
    amount still counts towards monthly totals; a warning is printed for it.

    Args:
        rows: DataFrame of raw strings or an iterable of row mappings.
        reference_year: Year used for "May N" dates (default: current year).

    Returns:
        Normalized DataFrame (see module docstring). The input is not modified.
    """
    if isinstance(rows, pd.DataFrame):
        rows = rows.to_dict("records")
    reference_year = reference_year or date.today().year

    records = []
    warnings = []
    dropped = 0
    for raw in rows:
        if not any(_clean(v) for v in raw.values()):
            continue
        fields = {key: _clean(raw.get(key)) for key in RAW_FIELDS}

        category = fields["Category"]
        amount = _parse_amount(fields["Amount"])
        if not category or amount is None:
            dropped += 1
            continue

        parsed_date = None
        is_fixed = fields["Date"] == ""
        if not is_fixed:
            parsed_date = _parse_date(fields["Date"], reference_year)
            if parsed_date is None:
                warnings.append(
                    f"  Unparseable date {fields['Date']!r} ({category}, {amount:,.2f}); "
                    "treating as fixed expense"
                )
                is_fixed = True

        records.append(
            {
                "date": parsed_date,
                "category": category,
                "amount": amount,
                "description": fields["Description"] or NO_DESCRIPTION,
                "is_fixed_expense": is_fixed,
            }
        )

    if warnings:
        print("Warnings during normalization:", file=sys.stderr)
        for warning in warnings:
            print(warning, file=sys.stderr)
    if dropped:
        print(f"  Dropped {dropped} rows with no category or no usable amount")

    if not records:
        return empty_frame()

    df = pd.DataFrame(records, columns=COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    df["amount"] = df["amount"].astype(float)
    df["is_fixed_expense"] = df["is_fixed_expense"].astype(bool)
    return df


def rows_from_values(values: list[list[str]]) -> list[dict[str, str]]:
    """
    Reshape a spreadsheet values payload into row mappings.

    The first row holds the headers; short rows are padded with "".

    Args:
        values: [[header, ...], [cell, ...], ...] as returned by a sheet API.

    Returns:
        One dict per data row keyed by header.
    """
    if not values:
        return []
    headers, *data_rows = values
    headers = [str(h).strip() for h in headers]
    return [
        {h: (row[i] if i < len(row) else "") for i, h in enumerate(headers)}
        for row in data_rows
    ]


def load_csv(filepath: Union[str, Path], reference_year: Optional[int] = None) -> pd.DataFrame:
    """
    Load a ledger CSV export and return the normalized transactions frame.

    Args:
        filepath: Path to the CSV file (columns Date, Category, Amount, Description).
        reference_year: Year used for "May N" dates.

    Returns:
        Normalized DataFrame.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    read_opts = dict(dtype=str, keep_default_na=False, skip_blank_lines=True)
    try:
        try:
            raw = pd.read_csv(filepath, encoding="utf-8", **read_opts)
        except UnicodeDecodeError:
            raw = pd.read_csv(filepath, encoding="latin-1", **read_opts)
    except pd.errors.EmptyDataError:
        print(f"  {filepath.name} is empty")
        return empty_frame()

    # Strip BOM and whitespace from column names
    raw.columns = raw.columns.str.strip().str.lstrip("\ufeff")
    print(f"  Loaded {filepath.name}: {len(raw)} rows")
    return normalize_rows(raw, reference_year=reference_year)
