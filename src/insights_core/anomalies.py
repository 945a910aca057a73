"""
Statistical anomaly detection per item.

Values are the item's daily totals within the window. An item needs at
least ANOMALY_MIN_RECORDS values; any value more than ANOMALY_Z_THRESHOLD
population standard deviations from the mean is an outlier.
"""

import pandas as pd

from .aggregation import daily_totals, quantize, safe_divide
from .config import (
    ANOMALY_BASE_CONFIDENCE,
    ANOMALY_DEFAULT_MIN_CONFIDENCE,
    ANOMALY_MAX_CONFIDENCE,
    ANOMALY_MAX_EXAMPLES,
    ANOMALY_MIN_RECORDS,
    ANOMALY_Z_THRESHOLD,
    MAX_ITEMS_PROCESSED,
    RATE_SCALE,
)
from .log import get_logger
from .models import Snapshot
from .results import AnomalyResult, OutlierPoint

logger = get_logger(__name__)


def anomaly_confidence(outlier_count: int, total: int) -> float:
    """0.6 plus the outlier share, capped at 0.99."""
    share = safe_divide(outlier_count, total, RATE_SCALE)
    return round(min(ANOMALY_MAX_CONFIDENCE, ANOMALY_BASE_CONFIDENCE + share), RATE_SCALE)


def find_outliers(series: pd.Series, dates: pd.Series) -> tuple[float, float, list[OutlierPoint]]:
    """
    Population mean/stddev of a series and its outliers.

    A constant series (stddev 0) never has outliers.
    """
    values = series.to_numpy(dtype=float)
    mean = float(values.mean())
    std = float(values.std(ddof=0))
    if std == 0:
        return mean, std, []

    deviations = values - mean
    outliers = [
        OutlierPoint(
            consumption_date=pd.Timestamp(day).date(),
            value=float(value),
            deviation=quantize(dev, RATE_SCALE),
            z_score=quantize(dev / std, RATE_SCALE),
        )
        for day, value, dev in zip(dates, values, deviations)
        if abs(dev) > ANOMALY_Z_THRESHOLD * std
    ]
    return mean, std, outliers


def detect_anomalies(
    snapshot: Snapshot,
    min_confidence: float = ANOMALY_DEFAULT_MIN_CONFIDENCE,
    max_items: int = MAX_ITEMS_PROCESSED,
) -> list[AnomalyResult]:
    """
    Items whose in-window consumption contains statistical outliers.

    Items with too few values are skipped silently. Results are ranked by
    confidence, then outlier count, and capped at `max_items`.

    Args:
        snapshot: Analysis snapshot
        min_confidence: Minimum confidence for an item to be reported
        max_items: Maximum number of items returned
    """
    daily = daily_totals(snapshot.window_frame)
    if len(daily) == 0:
        logger.debug("No records in window, skipping anomaly detection")
        return []

    names = snapshot.window_frame.groupby("item_id").agg(
        item_name=("item_name", "first"), category_name=("category_name", "first")
    )

    results = []
    skipped = 0
    for item_id, group in daily.groupby("item_id", sort=True):
        if len(group) < ANOMALY_MIN_RECORDS:
            skipped += 1
            continue

        mean, std, outliers = find_outliers(group["consumed_quantity"], group["consumption_date"])
        if not outliers:
            continue

        confidence = anomaly_confidence(len(outliers), len(group))
        if confidence < min_confidence:
            continue

        # Largest deviations first
        examples = sorted(outliers, key=lambda o: abs(o.deviation), reverse=True)
        category_name = names.at[item_id, "category_name"]
        results.append(
            AnomalyResult(
                item_id=int(item_id),
                item_name=names.at[item_id, "item_name"],
                category_name=None if pd.isna(category_name) else category_name,
                total_records=int(len(group)),
                mean=quantize(mean, RATE_SCALE),
                stddev=quantize(std, RATE_SCALE),
                outlier_count=len(outliers),
                confidence=confidence,
                outliers=examples[:ANOMALY_MAX_EXAMPLES],
            )
        )

    results.sort(key=lambda r: (-r.confidence, -r.outlier_count, r.item_id))
    logger.info(
        "Anomalies: %d items flagged, %d skipped for insufficient sample",
        len(results),
        skipped,
    )
    return results[:max_items]
