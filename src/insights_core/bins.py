"""
Intra-month bin variance.

Bin 1 covers days 1-15 of a month, bin 2 covers day 16 to month end.
Variance is always bin 2 minus bin 1.
"""

from datetime import date

from .aggregation import aggregate, safe_divide
from .config import BIN_SPLIT_DAY, MONEY_SCALE, PERCENT_SCALE
from .log import get_logger
from .models import Snapshot
from .periods import iter_buckets, month_end, month_label
from .results import BinTotals, BinVarianceReport, MonthBinVariance, VarianceResult

logger = get_logger(__name__)


def compute_variance(bin1: BinTotals, bin2: BinTotals) -> VarianceResult:
    """Difference between bins, with percentages relative to bin 1."""
    consumption = round(bin2.consumption - bin1.consumption, MONEY_SCALE)
    cost = round(bin2.cost - bin1.cost, MONEY_SCALE)
    return VarianceResult(
        consumption=consumption,
        cost=cost,
        percent=safe_divide(consumption * 100, bin1.consumption, PERCENT_SCALE),
        cost_percent=safe_divide(cost * 100, bin1.cost, PERCENT_SCALE),
    )


def month_bin_variance(
    snapshot: Snapshot, year: int, month: int, category_id: int | None = None
) -> MonthBinVariance:
    """Bin totals and variance for one calendar month."""
    first = date(year, month, 1)
    split = date(year, month, BIN_SPLIT_DAY)
    last = month_end(first)

    bins = []
    for start, end in ((first, split), (split.replace(day=BIN_SPLIT_DAY + 1), last)):
        totals = aggregate(
            snapshot.records_frame, category_id=category_id, start=start, end=end
        )
        bins.append(
            BinTotals(
                start_date=start,
                end_date=end,
                consumption=totals.quantity,
                cost=totals.cost,
                record_count=totals.count,
            )
        )

    bin1, bin2 = bins
    return MonthBinVariance(
        year=year,
        month=month,
        label=month_label(year, month),
        bin1=bin1,
        bin2=bin2,
        variance=compute_variance(bin1, bin2),
    )


def analyze_bin_variance(
    snapshot: Snapshot,
    year: int | None = None,
    month: int | None = None,
    category_id: int | None = None,
) -> BinVarianceReport:
    """
    Bin variance for one month, or for every month touched by the window.

    Months with no records in either bin are skipped rather than reported
    as zeros. `last_month` is the latest month that was kept.
    """
    if category_id is None:
        category_id = snapshot.category_id

    if year is not None and month is not None:
        periods = [(year, month)]
    else:
        periods = [
            (bucket.start.year, bucket.start.month)
            for bucket in iter_buckets(snapshot.start, snapshot.end, "monthly")
        ]

    months = []
    for y, m in periods:
        result = month_bin_variance(snapshot, y, m, category_id=category_id)
        if not result.has_records:
            logger.debug("Skipping %s: no records in either bin", result.label)
            continue
        months.append(result)

    logger.info("Bin variance computed for %d of %d months", len(months), len(periods))
    return BinVarianceReport(
        category_id=category_id,
        months=months,
        last_month=months[-1] if months else None,
    )
