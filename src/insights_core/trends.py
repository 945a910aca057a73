"""
Trend analysis over bucketed series.

Fits an ordinary-least-squares line over the bucket index, normalizes the
slope by the series mean and classifies direction and strength. Also builds
the consumption trend series (totals, per category, per top item).
"""

from typing import Sequence

import numpy as np
import pandas as pd

from .aggregation import item_totals, quantize, safe_divide
from .config import (
    PERCENT_SCALE,
    RATE_SCALE,
    TREND_MIN_POINTS,
    TREND_STABLE_THRESHOLD,
    TREND_STRONG_THRESHOLD,
    TREND_TOP_ITEMS,
    VOLATILITY_HIGH_PCT,
    Granularity,
)
from .log import get_logger
from .models import Snapshot
from .periods import Bucket, buckets
from .results import ConsumptionTrends, LabeledSeries, SeriesPoint, TrendResult, VolatilityResult

logger = get_logger(__name__)


def ols_slope(values: Sequence[float]) -> float:
    """Least-squares slope of values against their index 0..n-1."""
    y = np.asarray(values, dtype=float)
    if len(y) < 2:
        return 0.0
    x = np.arange(len(y), dtype=float)
    x_dev = x - x.mean()
    return float((x_dev * (y - y.mean())).sum() / (x_dev**2).sum())


def compute_volatility(values: Sequence[float]) -> VolatilityResult:
    """Mean absolute deviation from the mean, absolute and as % of the mean."""
    y = np.asarray(values, dtype=float)
    if len(y) == 0:
        return VolatilityResult()
    mean = y.mean()
    mad = float(np.abs(y - mean).mean())
    percent = safe_divide(mad * 100, mean, PERCENT_SCALE)
    return VolatilityResult(
        absolute=quantize(mad, RATE_SCALE),
        percent=percent,
        level="HIGH" if percent > VOLATILITY_HIGH_PCT else "LOW",
    )


def analyze_trend(values: Sequence[float]) -> TrendResult:
    """
    Classify the trend of an ordered series.

    Needs at least TREND_MIN_POINTS values; shorter series come back as
    INSUFFICIENT_DATA with no slope.

    Example:
        analyze_trend([10, 20, 30, 40]).direction  # "INCREASING"
    """
    values = [float(v or 0.0) for v in values]
    if len(values) < TREND_MIN_POINTS:
        return TrendResult(points=len(values))

    slope = ols_slope(values)
    mean = float(np.mean(values))
    normalized = safe_divide(slope, mean, RATE_SCALE)

    if abs(normalized) < TREND_STABLE_THRESHOLD:
        direction, strength = "STABLE", None
    else:
        direction = "INCREASING" if slope > 0 else "DECREASING"
        strength = "STRONG" if abs(normalized) > TREND_STRONG_THRESHOLD else "MODERATE"

    return TrendResult(
        direction=direction,
        strength=strength,
        slope=quantize(slope, RATE_SCALE),
        normalized_slope=normalized,
        mean=quantize(mean, RATE_SCALE),
        points=len(values),
        volatility=compute_volatility(values),
    )


def _bucket_series(records: pd.DataFrame, periods: list[Bucket]) -> list[SeriesPoint]:
    """Sum quantity and cost of records into each bucket."""
    dates = records["consumption_date"]
    points = []
    for bucket in periods:
        in_bucket = records[
            (dates >= pd.Timestamp(bucket.start)) & (dates <= pd.Timestamp(bucket.end))
        ]
        points.append(
            SeriesPoint(
                label=bucket.label,
                start_date=bucket.start,
                end_date=bucket.end,
                quantity=quantize(in_bucket["consumed_quantity"].sum()),
                cost=quantize(in_bucket["cost"].sum()),
            )
        )
    return points


def consumption_trends(
    snapshot: Snapshot,
    granularity: Granularity = "monthly",
    top_items: int = TREND_TOP_ITEMS,
) -> ConsumptionTrends:
    """
    Bucketed consumption for the window.

    Returns totals per bucket, one series per category, one series per top
    item by quantity, and the trend of the total-cost series.
    """
    periods = buckets(snapshot.start, snapshot.end, granularity)
    records = snapshot.window_frame

    totals = _bucket_series(records, periods)

    by_category = []
    if len(records):
        named = records.assign(category_name=records["category_name"].fillna("Uncategorized"))
        for name, group in named.groupby("category_name", sort=True):
            category_id = group["category_id"].iloc[0]
            by_category.append(
                LabeledSeries(
                    key_id=None if pd.isna(category_id) else int(category_id),
                    name=str(name),
                    points=_bucket_series(group, periods),
                )
            )

    by_item = []
    ranked = item_totals(records)
    if len(ranked):
        ranked = ranked.sort_values(["total_quantity", "item_id"], ascending=[False, True])
        for row in ranked.head(top_items).itertuples(index=False):
            by_item.append(
                LabeledSeries(
                    key_id=int(row.item_id),
                    name=row.item_name or f"Item {row.item_id}",
                    points=_bucket_series(records[records["item_id"] == row.item_id], periods),
                )
            )

    cost_trend = analyze_trend([p.cost for p in totals])
    logger.info(
        "Trends: %d %s buckets, cost trend %s",
        len(totals),
        granularity,
        cost_trend.direction,
    )
    return ConsumptionTrends(
        granularity=granularity,
        start_date=snapshot.start,
        end_date=snapshot.end,
        totals=totals,
        by_category=by_category,
        by_item=by_item,
        cost_trend=cost_trend,
    )
