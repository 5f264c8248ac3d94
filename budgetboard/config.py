"""
config.py - Load dashboard configuration from budget.yaml.

The budget ceilings and the needs/wants tags are static reference data. They
are loaded once and passed explicitly into every aggregation and metrics call.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


CONFIG_FILE = Path(__file__).parent.parent / "config" / "budget.yaml"

NEED = "Need"
WANT = "Want"

DEFAULT_FIXED_COST_CATEGORY = "Rent & Utilities"
DEFAULT_MONTHLY_BUDGET = 50000.0


@dataclass(frozen=True)
class CurrencyFormat:
    symbol: str = "₹"
    grouping: str = "indian"
    decimals: int = 0


@dataclass(frozen=True)
class DashboardConfig:
    budgets: dict[str, float] = field(default_factory=dict)
    needs_wants: dict[str, str] = field(default_factory=dict)
    fixed_cost_category: str = DEFAULT_FIXED_COST_CATEGORY
    monthly_budget: float = DEFAULT_MONTHLY_BUDGET
    currency: CurrencyFormat = field(default_factory=CurrencyFormat)


def _parse_budgets(raw) -> dict[str, float]:
    budgets: dict[str, float] = {}
    for category, limit in (raw or {}).items():
        value = float(limit)
        if value < 0:
            raise ValueError(f"Budget for '{category}' must be non-negative, got {limit}")
        budgets[str(category)] = value
    return budgets


def _parse_needs_wants(raw) -> dict[str, str]:
    tags: dict[str, str] = {}
    for category, tag in (raw or {}).items():
        tag = str(tag).strip().title()
        if tag not in (NEED, WANT):
            raise ValueError(f"Category '{category}' must be tagged Need or Want, got {tag!r}")
        tags[str(category)] = tag
    return tags


def _parse_currency(raw) -> CurrencyFormat:
    raw = raw or {}
    grouping = str(raw.get("grouping", "indian")).lower()
    if grouping not in ("indian", "western"):
        raise ValueError(f"Unknown currency grouping: {grouping!r}")
    return CurrencyFormat(
        symbol=str(raw.get("symbol", "₹")),
        grouping=grouping,
        decimals=int(raw.get("decimals", 0)),
    )


def config_from_dict(data: dict) -> DashboardConfig:
    """Build a DashboardConfig from the parsed YAML mapping."""
    data = data or {}
    return DashboardConfig(
        budgets=_parse_budgets(data.get("budgets")),
        needs_wants=_parse_needs_wants(data.get("needs_wants")),
        fixed_cost_category=str(data.get("fixed_cost_category", DEFAULT_FIXED_COST_CATEGORY)),
        monthly_budget=float(data.get("monthly_budget", DEFAULT_MONTHLY_BUDGET)),
        currency=_parse_currency(data.get("currency")),
    )


def load_config(path: Optional[Path] = None) -> DashboardConfig:
    """Load dashboard configuration from a YAML file.

    Args:
        path: Path to budget.yaml. Defaults to config/budget.yaml.

    Returns:
        DashboardConfig with budgets, needs/wants tags and pace settings.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a budget is negative or a tag is not Need/Want.
    """
    path = Path(path) if path else CONFIG_FILE
    if not path.exists():
        raise FileNotFoundError(f"Budget config not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return config_from_dict(data or {})
