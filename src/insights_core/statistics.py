"""
Descriptive statistics per item and per category.

Item values are the item's daily totals in the window, in date order.
Standard deviation here is the sample (n - 1) deviation.
"""

import math
from typing import Sequence

import numpy as np
import pandas as pd

from .aggregation import daily_totals, item_totals, quantize, safe_divide
from .config import (
    CATEGORY_TOP_ITEMS,
    IRREGULAR_ZERO_RATIO,
    MAX_ITEMS_PROCESSED,
    PERCENT_SCALE,
    RATE_SCALE,
    SPORADIC_ZERO_RATIO,
    TREND_FORECAST_DAMPING,
    TREND_FORECAST_UPLIFT,
    VOLATILITY_CLASS_BANDS,
)
from .log import get_logger
from .models import Snapshot
from .results import CategoryItemTotal, CategoryStatistics, ItemStatistics
from .trends import analyze_trend

logger = get_logger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def sample_std(values: Sequence[float]) -> float:
    if len(values) <= 1:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def coefficient_of_variation(mean: float, std: float) -> float:
    return safe_divide(std, mean, RATE_SCALE)


def classify_volatility(cv: float) -> str:
    for floor, label in VOLATILITY_CLASS_BANDS:
        if abs(cv) > floor:
            return label
    return "VERY_LOW"


def percentile(values: Sequence[float], pct: int) -> float:
    """Nearest-rank percentile."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.ceil(pct / 100 * len(ordered)) - 1
    return float(ordered[max(0, min(index, len(ordered) - 1))])


def consumption_pattern(values: Sequence[float]) -> str:
    if not values:
        return "NO_DATA"
    zero_ratio = sum(1 for v in values if v == 0) / len(values)
    if zero_ratio > SPORADIC_ZERO_RATIO:
        return "SPORADIC"
    if zero_ratio > IRREGULAR_ZERO_RATIO:
        return "IRREGULAR"
    return "REGULAR"


def forecast_next_period(values: Sequence[float], direction: str) -> float:
    if not values:
        return 0.0
    if direction == "INCREASING":
        return values[-1] * TREND_FORECAST_UPLIFT
    if direction == "DECREASING":
        return values[-1] * TREND_FORECAST_DAMPING
    return float(np.mean(values))


def _day_of_week_profile(daily: pd.DataFrame) -> tuple[dict[str, float], float, float]:
    weekday = daily["consumption_date"].dt.weekday
    averages = daily.groupby(weekday)["consumed_quantity"].mean().sort_index()
    profile = {DAY_NAMES[day]: quantize(avg, RATE_SCALE) for day, avg in averages.items()}
    weekdays = [avg for day, avg in averages.items() if day < 5]
    weekends = [avg for day, avg in averages.items() if day >= 5]
    return (
        profile,
        quantize(np.mean(weekdays), RATE_SCALE) if weekdays else 0.0,
        quantize(np.mean(weekends), RATE_SCALE) if weekends else 0.0,
    )


def item_statistics(snapshot: Snapshot, item_id: int) -> ItemStatistics:
    """
    Statistics for one item over the snapshot window.

    An item without records in the window gets a NO_DATA result.
    """
    records = snapshot.window_frame[snapshot.window_frame["item_id"] == item_id]
    item = snapshot.item(item_id)
    name = item.name if item else None
    period_days = snapshot.days_in_window
    if len(records) == 0:
        return ItemStatistics(item_id=item_id, item_name=name, period_days=period_days)

    daily = daily_totals(records)
    values = [float(v) for v in daily["consumed_quantity"]]
    mean = float(np.mean(values))
    std = sample_std(values)
    cv = coefficient_of_variation(mean, std)
    trend = analyze_trend(values)
    active_days = sum(1 for v in values if v > 0)
    profile, weekday_avg, weekend_avg = _day_of_week_profile(daily)

    return ItemStatistics(
        item_id=item_id,
        item_name=name or records["item_name"].iloc[0],
        period_days=period_days,
        total_records=int(len(records)),
        total_consumption=quantize(sum(values)),
        mean=quantize(mean, RATE_SCALE),
        median=quantize(np.median(values), RATE_SCALE),
        standard_deviation=quantize(std, RATE_SCALE),
        coefficient_of_variation=cv,
        minimum=min(values),
        maximum=max(values),
        range=quantize(max(values) - min(values), RATE_SCALE),
        volatility_class=classify_volatility(cv),
        trend=trend.direction,
        consumption_pattern=consumption_pattern(values),
        days_with_activity=active_days,
        activity_rate=safe_divide(active_days, period_days, PERCENT_SCALE),
        day_of_week_averages=profile,
        weekday_average=weekday_avg,
        weekend_average=weekend_avg,
        percentile_25=percentile(values, 25),
        percentile_75=percentile(values, 75),
        percentile_90=percentile(values, 90),
        forecast_next_period=quantize(forecast_next_period(values, trend.direction), RATE_SCALE),
    )


def top_item_statistics(
    snapshot: Snapshot, max_items: int = MAX_ITEMS_PROCESSED
) -> list[ItemStatistics]:
    """Statistics for the highest-volume items in the window."""
    totals = item_totals(snapshot.window_frame)
    if len(totals) == 0:
        return []
    ranked = totals.sort_values(["total_quantity", "item_id"], ascending=[False, True])
    stats = [item_statistics(snapshot, int(i)) for i in ranked["item_id"].head(max_items)]
    logger.info("Item statistics computed for %d items", len(stats))
    return stats


def category_statistics(snapshot: Snapshot) -> list[CategoryStatistics]:
    """
    Per-category totals, item breakdown and the CV across item totals.

    Categories are ordered by total consumption. Records of uncategorized
    items are left out.
    """
    records = snapshot.window_frame[snapshot.window_frame["category_id"].notna()]
    results = []
    for category_id, group in records.groupby("category_id", sort=True):
        entries = []
        for item_id, item_records in group.groupby("item_id", sort=True):
            values = [float(v) for v in item_records["consumed_quantity"]]
            mean = float(np.mean(values))
            entries.append(
                CategoryItemTotal(
                    item_id=int(item_id),
                    item_name=item_records["item_name"].iloc[0],
                    total_consumption=quantize(sum(values)),
                    average_consumption=quantize(mean, RATE_SCALE),
                    coefficient_of_variation=coefficient_of_variation(mean, sample_std(values)),
                )
            )
        entries.sort(key=lambda e: (-e.total_consumption, e.item_id))

        totals = [e.total_consumption for e in entries]
        category_cv = coefficient_of_variation(float(np.mean(totals)), sample_std(totals))
        results.append(
            CategoryStatistics(
                category_id=int(category_id),
                category_name=str(group["category_name"].iloc[0]),
                total_items=len(entries),
                total_records=int(len(group)),
                total_consumption=quantize(sum(totals)),
                category_cv=category_cv,
                category_volatility=classify_volatility(category_cv),
                items=entries,
                top_items=entries[:CATEGORY_TOP_ITEMS],
            )
        )

    results.sort(key=lambda c: (-c.total_consumption, c.category_id))
    logger.info("Category statistics computed for %d categories", len(results))
    return results
