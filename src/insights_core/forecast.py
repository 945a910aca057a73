"""
Forecast accuracy scoring.

The forecast for an item is its stored daily rate (`forecast_daily_rate`)
times the days in the window. This is a different quantity from the
observed daily rate the health scorer derives from in-window records.
"""

from .aggregation import item_totals, quantize, safe_divide
from .config import FORECAST_RATING_BANDS, MAX_ITEMS_PROCESSED, PERCENT_SCALE
from .log import get_logger
from .models import Snapshot
from .results import ForecastAccuracyResult, ItemForecastAccuracy

logger = get_logger(__name__)


def rate_accuracy(accuracy: float) -> str:
    for floor, rating in FORECAST_RATING_BANDS:
        if accuracy >= floor:
            return rating
    return "NEEDS_IMPROVEMENT"


def forecast_accuracy(
    snapshot: Snapshot, max_misses: int = MAX_ITEMS_PROCESSED
) -> ForecastAccuracyResult:
    """
    Compare stored forecasts with actual in-window consumption.

    Items whose forecast is zero are left out of both totals. The accuracy
    is not clamped, so it can fall below zero when forecasts are far off.
    """
    days = snapshot.days_in_window
    actual_by_item = item_totals(snapshot.window_frame).set_index("item_id")["total_quantity"]

    entries = []
    for item in snapshot.items:
        forecast = item.forecast_daily_rate * days
        if forecast <= 0:
            continue
        actual = float(actual_by_item.get(item.id, 0.0))
        entries.append(
            ItemForecastAccuracy(
                item_id=item.id,
                item_name=item.name,
                forecast_daily_rate=item.forecast_daily_rate,
                forecast=quantize(forecast),
                actual=quantize(actual),
                error=quantize(actual - forecast),
            )
        )

    if not entries:
        logger.debug("No items with a positive forecast")
        return ForecastAccuracyResult(days_in_window=days)

    total_forecast = sum(e.forecast for e in entries)
    total_actual = sum(e.actual for e in entries)
    accuracy = round(
        100 - safe_divide(abs(total_actual - total_forecast) * 100, total_forecast, PERCENT_SCALE),
        PERCENT_SCALE,
    )
    misses = sorted(entries, key=lambda e: (-abs(e.error), e.item_id))

    logger.info("Forecast accuracy %.2f%% over %d items", accuracy, len(entries))
    return ForecastAccuracyResult(
        days_in_window=days,
        items_evaluated=len(entries),
        total_forecast=quantize(total_forecast),
        total_actual=quantize(total_actual),
        accuracy=accuracy,
        rating=rate_accuracy(accuracy),
        largest_misses=misses[:max_misses],
    )
