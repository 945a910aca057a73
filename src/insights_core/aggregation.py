"""
Aggregation primitives shared by every analyzer.

- safe_divide: zero-denominator-safe division with explicit scale/rounding
- aggregate: quantity / cost / count over any record subset
- cost distribution by category
"""

import math
from datetime import date
from decimal import ROUND_CEILING, ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP, Decimal
from typing import Any, Literal

import pandas as pd

from .config import MONEY_SCALE, PERCENT_SCALE
from .log import get_logger
from .models import Snapshot
from .results import Aggregate, CategoryCost, CostDistribution

logger = get_logger(__name__)

Rounding = Literal["half_up", "up", "down", "ceiling", "half_even"]

_ROUNDING_MODES = {
    "half_up": ROUND_HALF_UP,
    "up": ROUND_UP,  # away from zero
    "down": ROUND_DOWN,
    "ceiling": ROUND_CEILING,
    "half_even": ROUND_HALF_EVEN,
}


def to_decimal(value: Any) -> Decimal:
    """Coerce a number (or None / NaN) to Decimal; missing values become 0."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    try:
        if math.isnan(value):
            return Decimal(0)
    except TypeError:
        pass
    return Decimal(str(value))


def quantize(value: Any, scale: int = MONEY_SCALE, rounding: Rounding = "half_up") -> float:
    """Round a number to `scale` decimal places with the given rounding."""
    exponent = Decimal(1).scaleb(-scale)
    return float(to_decimal(value).quantize(exponent, rounding=_ROUNDING_MODES[rounding]))


def safe_divide(
    numerator: Any,
    denominator: Any,
    scale: int = MONEY_SCALE,
    rounding: Rounding = "half_up",
) -> float:
    """
    Divide, returning 0 when the denominator is zero or missing.

    Args:
        numerator: Dividend (None / NaN treated as 0)
        denominator: Divisor (None / NaN / 0 yields 0)
        scale: Decimal places kept in the result
        rounding: Rounding mode applied at `scale` (default round-half-up)
    """
    den = to_decimal(denominator)
    if den == 0:
        return 0.0
    num = to_decimal(numerator)
    exponent = Decimal(1).scaleb(-scale)
    return float((num / den).quantize(exponent, rounding=_ROUNDING_MODES[rounding]))


def filter_records(
    records: pd.DataFrame,
    item_id: int | None = None,
    item_ids: list[int] | set[int] | None = None,
    category_id: int | None = None,
    start: date | None = None,
    end: date | None = None,
) -> pd.DataFrame:
    """Return the records matching every given predicate (inclusive dates)."""
    mask = pd.Series(True, index=records.index)
    if item_id is not None:
        mask &= records["item_id"] == item_id
    if item_ids is not None:
        mask &= records["item_id"].isin(list(item_ids))
    if category_id is not None:
        mask &= records["category_id"] == category_id
    if start is not None:
        mask &= records["consumption_date"] >= pd.Timestamp(start)
    if end is not None:
        mask &= records["consumption_date"] <= pd.Timestamp(end)
    return records[mask]


def aggregate(records: pd.DataFrame, **predicates) -> Aggregate:
    """
    Total quantity, cost and record count over the matching records.

    Quantities are already null-coalesced; cost is quantity x that record's
    item price with a missing price counting as zero.
    """
    subset = filter_records(records, **predicates) if predicates else records
    if len(subset) == 0:
        return Aggregate()
    return Aggregate(
        quantity=quantize(subset["consumed_quantity"].fillna(0).sum(), MONEY_SCALE),
        cost=quantize(subset["cost"].fillna(0).sum(), MONEY_SCALE),
        count=int(len(subset)),
    )


def daily_totals(records: pd.DataFrame) -> pd.DataFrame:
    """
    Sum records per (item, date).

    Multiple records for the same item and date are added together.
    """
    if len(records) == 0:
        return pd.DataFrame(
            columns=["item_id", "consumption_date", "consumed_quantity", "cost"]
        )
    return (
        records.groupby(["item_id", "consumption_date"], as_index=False)
        .agg(consumed_quantity=("consumed_quantity", "sum"), cost=("cost", "sum"))
        .sort_values(["item_id", "consumption_date"])
        .reset_index(drop=True)
    )


def item_totals(records: pd.DataFrame) -> pd.DataFrame:
    """Total quantity and cost per item, with the item's display fields."""
    if len(records) == 0:
        return pd.DataFrame(
            columns=["item_id", "item_name", "category_name", "total_quantity", "total_cost"]
        )
    totals = (
        records.groupby("item_id", as_index=False)
        .agg(
            item_name=("item_name", "first"),
            category_name=("category_name", "first"),
            total_quantity=("consumed_quantity", "sum"),
            total_cost=("cost", "sum"),
        )
        .reset_index(drop=True)
    )
    # Uncategorized items carry None, not NaN
    totals["category_name"] = totals["category_name"].astype(object).where(
        totals["category_name"].notna(), None
    )
    return totals


def compute_cost_distribution(snapshot: Snapshot) -> CostDistribution:
    """Cost share per category over the snapshot window, largest first."""
    records = snapshot.window_frame
    if len(records) == 0:
        return CostDistribution(start_date=snapshot.start, end_date=snapshot.end)

    grouped = (
        records.assign(category_name=records["category_name"].fillna("Uncategorized"))
        .groupby("category_name", as_index=False, dropna=False)
        .agg(
            category_id=("category_id", "first"),
            total_quantity=("consumed_quantity", "sum"),
            total_cost=("cost", "sum"),
        )
        .sort_values(["total_cost", "category_name"], ascending=[False, True])
    )
    total_cost = float(grouped["total_cost"].sum())

    categories = [
        CategoryCost(
            category_id=None if pd.isna(row.category_id) else int(row.category_id),
            category_name=str(row.category_name),
            total_quantity=quantize(row.total_quantity),
            total_cost=quantize(row.total_cost),
            percentage=safe_divide(row.total_cost * 100, total_cost, PERCENT_SCALE),
        )
        for row in grouped.itertuples(index=False)
    ]
    logger.debug("Cost distribution over %d categories", len(categories))
    return CostDistribution(
        start_date=snapshot.start,
        end_date=snapshot.end,
        total_cost=quantize(total_cost),
        categories=categories,
    )
