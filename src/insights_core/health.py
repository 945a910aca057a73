"""
Inventory health scoring.

Each item's days of supply is its current quantity divided by the daily
rate observed in the window. Items are bucketed into risk tiers and the
tier counts roll up into a 0-100 score.
"""

from datetime import timedelta

from .aggregation import item_totals, quantize, safe_divide, to_decimal
from .config import (
    HEALTH_CRITICAL_DAYS,
    HEALTH_MEDIUM_DAYS,
    HEALTH_RATING_BANDS,
    HEALTH_WARNING_DAYS,
    MONEY_SCALE,
    NO_CONSUMPTION_SENTINEL_DAYS,
    RATE_SCALE,
)
from .log import get_logger
from .models import Item, Snapshot
from .results import HealthScore, ItemCoverage

logger = get_logger(__name__)

TIER_ORDER = {"CRITICAL": 0, "WARNING": 1, "MEDIUM": 2, "SAFE": 3}


def days_remaining(current_quantity: float, consumed: float, days_in_window: int) -> int:
    """
    Whole days of supply, rounded up; the sentinel when nothing is consumed.

    Computed from the unrounded totals: quantity x days / consumed.
    """
    if not consumed:
        return NO_CONSUMPTION_SENTINEL_DAYS
    supply = to_decimal(current_quantity) * days_in_window
    return int(safe_divide(supply, consumed, 0, rounding="up"))


def classify_tier(days: int) -> str:
    if days < HEALTH_CRITICAL_DAYS:
        return "CRITICAL"
    if days < HEALTH_WARNING_DAYS:
        return "WARNING"
    if days < HEALTH_MEDIUM_DAYS:
        return "MEDIUM"
    return "SAFE"


def rate_health(score: int) -> str:
    for floor, rating in HEALTH_RATING_BANDS:
        if score >= floor:
            return rating
    return "POOR"


def item_coverage(snapshot: Snapshot, item: Item, consumed: float) -> ItemCoverage:
    """One stock-level row for an item given its in-window consumption."""
    rate = safe_divide(consumed, snapshot.days_in_window, RATE_SCALE)
    days = days_remaining(item.current_quantity, consumed, snapshot.days_in_window)
    has_supply_date = days != NO_CONSUMPTION_SENTINEL_DAYS
    return ItemCoverage(
        item_id=item.id,
        item_name=item.name,
        category_name=item.category.name if item.category else None,
        current_quantity=item.current_quantity,
        unit_price=item.price,
        inventory_value=quantize(item.current_quantity * item.price, MONEY_SCALE),
        observed_daily_rate=rate,
        days_remaining=days,
        tier=classify_tier(days),
        expected_stockout_date=snapshot.end + timedelta(days=days) if has_supply_date else None,
        below_reorder_level=(
            item.reorder_level is not None and item.current_quantity <= item.reorder_level
        ),
        stock_alert_level=item.stock_alert_level,
    )


def score_health(snapshot: Snapshot) -> HealthScore:
    """
    Health score and stock-level table for every item in the snapshot.

    Score = (safe x 100 + (warning + medium) x 50) / total items, rounded
    half up. Critical items contribute nothing. No items scores 0 (POOR).
    """
    if not snapshot.items:
        logger.debug("No items, health score is 0")
        return HealthScore()

    consumed = item_totals(snapshot.window_frame).set_index("item_id")["total_quantity"]
    rows = [
        item_coverage(snapshot, item, float(consumed.get(item.id, 0.0)))
        for item in snapshot.items
    ]
    rows.sort(key=lambda r: (TIER_ORDER[r.tier], r.days_remaining, r.item_id))

    counts = {tier: 0 for tier in TIER_ORDER}
    for row in rows:
        counts[row.tier] += 1

    total = len(rows)
    score = int(
        safe_divide(
            counts["SAFE"] * 100 + (counts["WARNING"] + counts["MEDIUM"]) * 50,
            total,
            0,
        )
    )
    result = HealthScore(
        total_items=total,
        critical_count=counts["CRITICAL"],
        warning_count=counts["WARNING"],
        medium_count=counts["MEDIUM"],
        safe_count=counts["SAFE"],
        overall_score=score,
        rating=rate_health(score),
        total_inventory_value=quantize(sum(r.inventory_value for r in rows)),
        items=rows,
    )
    logger.info(
        "Health score %d (%s): %d critical, %d warning, %d medium, %d safe",
        score,
        result.rating,
        counts["CRITICAL"],
        counts["WARNING"],
        counts["MEDIUM"],
        counts["SAFE"],
    )
    return result
