"""
main.py - CLI entry point for the Budget Dashboard.

Usage:
    python main.py --input data/ledger.csv
    python main.py --input data/ledger.csv --month 2025-05 --granularity week
    python main.py --input data/ledger.csv --category Groceries --search market
"""

import argparse
import sys
from datetime import date
from pathlib import Path

import pandas as pd
import yaml


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="budget-dashboard",
        description="Personal budget dashboard figures from a ledger CSV.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --input data/ledger.csv
  python main.py --input data/ledger.csv --month 2025-05 --granularity week
  python main.py --input data/ledger.csv --category Groceries --category Transit
        """,
    )
    parser.add_argument(
        "--input", "-i",
        type=Path,
        default=Path("data") / "ledger.csv",
        help="Ledger CSV with Date, Category, Amount, Description (default: data/ledger.csv)",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=Path("output"),
        help="Directory for output files (default: output/)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to custom budget.yaml (default: config/budget.yaml)",
    )
    parser.add_argument(
        "--month",
        type=str,
        default=None,
        metavar="YYYY-MM",
        help="Month to show (default: month of the first dated transaction)",
    )
    parser.add_argument(
        "--granularity",
        choices=["day", "week", "month"],
        default="day",
        help="Time bucket for the spending series (default: day)",
    )
    parser.add_argument(
        "--category",
        action="append",
        default=[],
        metavar="NAME",
        help="Only list transactions in this category (repeatable)",
    )
    parser.add_argument(
        "--search",
        type=str,
        default="",
        help="Only list transactions whose description or category contains this text",
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        metavar="YYYY-MM-DD",
        help="Override today's date",
    )
    parser.add_argument(
        "--reference-year",
        type=int,
        default=None,
        metavar="YEAR",
        help='Year for "May N" dates (default: current year)',
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    print("=" * 60)
    print("  Budget Dashboard")
    print("=" * 60)
    print(f"  Input:   {args.input.resolve()}")
    print(f"  Output:  {args.output.resolve()}")
    print()

    # --- Config ---
    from budgetboard.config import load_config

    try:
        print("Step 1/4  Loading budget config...")
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"\nError loading config: {e}", file=sys.stderr)
        return 1
    print(f"  {len(config.budgets)} budgeted categories")

    # --- Ingest ---
    from budgetboard.ingest import load_csv

    try:
        print("\nStep 2/4  Ingesting ledger...")
        df = load_csv(args.input, reference_year=args.reference_year)
    except (FileNotFoundError, ValueError) as e:
        print(f"\nError during ingestion: {e}", file=sys.stderr)
        return 1

    if df.empty:
        print("  No transactions found; the dashboard will be empty.")
    else:
        fixed = int(df["is_fixed_expense"].sum())
        print(f"  {len(df)} transactions ({fixed} fixed expenses)")

    # --- Derive ---
    from budgetboard.export import format_summary
    from budgetboard.view import DashboardState

    print("\nStep 3/4  Deriving dashboard...")
    state = DashboardState(df, config, today=args.today)
    try:
        if args.month:
            state.set_month(pd.Period(args.month, freq="M"))
        state.set_granularity(args.granularity)
    except ValueError as e:
        print(f"\nInvalid selection: {e}", file=sys.stderr)
        return 1
    for category in args.category:
        state.toggle_category(category)
    state.set_search(args.search)

    results = state.derived
    print()
    print(format_summary(results, config))

    # --- Export ---
    from budgetboard.export import export

    print("\nStep 4/4  Exporting...")
    try:
        export(results, args.output)
    except OSError as e:
        print(f"\nError during export: {e}", file=sys.stderr)
        return 1

    print("\n" + "=" * 60)
    print(f"  Done! {len(results['table'])} transactions listed in {args.output / 'transactions_table.csv'}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
