"""
Top movers: items ranked by volume, by cost and by growth.

Growth compares the second half of the window with the first half. The
first half is the first `days // 2` days; the second half is the rest.
"""

from datetime import date, timedelta

import pandas as pd

from .aggregation import item_totals, quantize, safe_divide
from .config import DEFAULT_TOP_N, FAST_GROWTH_PCT, PERCENT_SCALE
from .log import get_logger
from .models import Snapshot
from .results import MoverEntry, TopMovers

logger = get_logger(__name__)


def split_window(snapshot: Snapshot) -> date:
    """Last day of the first half; the second half starts the day after."""
    return snapshot.start + timedelta(days=snapshot.days_in_window // 2 - 1)


def rank_movers(snapshot: Snapshot, top_n: int = DEFAULT_TOP_N) -> TopMovers:
    """
    Top-N items by total quantity, total cost and growth.

    Only items growing by more than FAST_GROWTH_PCT percent are listed as
    fastest growing. Ties break on item id.
    """
    records = snapshot.window_frame
    totals = item_totals(records)
    if len(totals) == 0:
        logger.debug("No records in window, no movers")
        return TopMovers()

    first_half_end = pd.Timestamp(split_window(snapshot))
    first = records[records["consumption_date"] <= first_half_end].groupby("item_id")[
        "consumed_quantity"
    ].sum()
    second = records[records["consumption_date"] > first_half_end].groupby("item_id")[
        "consumed_quantity"
    ].sum()

    entries = []
    for row in totals.itertuples(index=False):
        first_qty = float(first.get(row.item_id, 0.0))
        second_qty = float(second.get(row.item_id, 0.0))
        entries.append(
            MoverEntry(
                item_id=int(row.item_id),
                item_name=row.item_name,
                category_name=row.category_name,
                total_quantity=quantize(row.total_quantity),
                total_cost=quantize(row.total_cost),
                first_half_quantity=quantize(first_qty),
                second_half_quantity=quantize(second_qty),
                growth_percent=safe_divide(
                    (second_qty - first_qty) * 100, first_qty, PERCENT_SCALE
                ),
            )
        )

    by_volume = sorted(entries, key=lambda e: (-e.total_quantity, e.item_id))
    by_cost = sorted(entries, key=lambda e: (-e.total_cost, e.item_id))
    growing = sorted(
        (e for e in entries if e.growth_percent > FAST_GROWTH_PCT),
        key=lambda e: (-e.growth_percent, e.item_id),
    )

    logger.info("Movers: %d items ranked, %d growing fast", len(entries), len(growing))
    return TopMovers(
        by_volume=by_volume[:top_n],
        by_cost=by_cost[:top_n],
        fastest_growing=growing[:top_n],
    )
