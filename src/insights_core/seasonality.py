"""
Seasonality detection by calendar month.

Total cost is grouped by month of year (1-12), collapsing years together.
The result reports `years_covered` so callers can tell when collapsing
happened.
"""

from .aggregation import quantize, safe_divide
from .config import PERCENT_SCALE, SEASONALITY_MIN_MONTHS, SEASONALITY_VARIANCE_PCT
from .log import get_logger
from .models import Snapshot
from .periods import MONTH_ABBR
from .results import SectionStatus, SeasonalityResult

logger = get_logger(__name__)


def detect_seasonality(snapshot: Snapshot) -> SeasonalityResult:
    """
    Peak and trough months and whether their spread is seasonal.

    Needs records in at least SEASONALITY_MIN_MONTHS distinct calendar
    months; otherwise returns an INSUFFICIENT_SAMPLE result.
    """
    records = snapshot.window_frame
    if len(records) == 0:
        return SeasonalityResult(status=SectionStatus.EMPTY_DATASET)

    dates = records["consumption_date"]
    distinct_months = int((dates.dt.year * 100 + dates.dt.month).nunique())
    years_covered = int(dates.dt.year.nunique())
    if distinct_months < SEASONALITY_MIN_MONTHS:
        logger.debug(
            "Seasonality needs %d months, window has %d",
            SEASONALITY_MIN_MONTHS,
            distinct_months,
        )
        return SeasonalityResult(
            status=SectionStatus.INSUFFICIENT_SAMPLE,
            distinct_months=distinct_months,
            years_covered=years_covered,
        )

    by_month = records.groupby(dates.dt.month)["cost"].sum().sort_index()
    peak = int(by_month.idxmax())
    trough = int(by_month.idxmin())
    variance = float(by_month.max() - by_month.min())
    mean = float(by_month.mean())
    variance_percent = safe_divide(variance * 100, mean, PERCENT_SCALE)

    result = SeasonalityResult(
        status=SectionStatus.OK,
        distinct_months=distinct_months,
        years_covered=years_covered,
        monthly_costs={MONTH_ABBR[m - 1]: quantize(v) for m, v in by_month.items()},
        peak_month=MONTH_ABBR[peak - 1],
        trough_month=MONTH_ABBR[trough - 1],
        variance=quantize(variance),
        variance_percent=variance_percent,
        is_seasonal=variance_percent > SEASONALITY_VARIANCE_PCT,
    )
    logger.info(
        "Seasonality: peak %s, trough %s, variance %.2f%%",
        result.peak_month,
        result.trough_month,
        variance_percent,
    )
    return result
