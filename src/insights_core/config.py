"""
Configuration for consumption analytics.

Contains analysis thresholds, result caps and the per-call parameter model.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

# ============================================================================
# WINDOWS
# ============================================================================

# Window used when no consumption data exists at all
DEFAULT_WINDOW_DAYS = 30

# First half of a month for bin variance (days 1..BIN_SPLIT_DAY)
BIN_SPLIT_DAY = 15

# ============================================================================
# ROUNDING
# ============================================================================

MONEY_SCALE = 2
RATE_SCALE = 4
PERCENT_SCALE = 2

# ============================================================================
# TREND / VOLATILITY
# ============================================================================

TREND_MIN_POINTS = 3
TREND_STABLE_THRESHOLD = 0.05   # |slope / mean| below this is STABLE
TREND_STRONG_THRESHOLD = 0.15   # |slope / mean| above this is STRONG
VOLATILITY_HIGH_PCT = 20.0

# ============================================================================
# ANOMALIES
# ============================================================================

ANOMALY_MIN_RECORDS = 10
ANOMALY_Z_THRESHOLD = 2.0
ANOMALY_BASE_CONFIDENCE = 0.6
ANOMALY_MAX_CONFIDENCE = 0.99
ANOMALY_DEFAULT_MIN_CONFIDENCE = 0.7
ANOMALY_MAX_EXAMPLES = 5

# ============================================================================
# SEASONALITY
# ============================================================================

SEASONALITY_MIN_MONTHS = 6
SEASONALITY_VARIANCE_PCT = 30.0

# ============================================================================
# FORECAST ACCURACY
# ============================================================================

FORECAST_RATING_BANDS = [
    (90.0, "EXCELLENT"),
    (80.0, "GOOD"),
    (70.0, "FAIR"),
]

# ============================================================================
# HEALTH
# ============================================================================

HEALTH_CRITICAL_DAYS = 7
HEALTH_WARNING_DAYS = 14
HEALTH_MEDIUM_DAYS = 30
NO_CONSUMPTION_SENTINEL_DAYS = 999

HEALTH_RATING_BANDS = [
    (80, "EXCELLENT"),
    (60, "GOOD"),
    (40, "FAIR"),
]

# ============================================================================
# TOP MOVERS
# ============================================================================

FAST_GROWTH_PCT = 20.0

# ============================================================================
# COST OPPORTUNITIES
# ============================================================================

COST_OPPORTUNITY_THRESHOLD = 0.10   # latest month must exceed baseline by 10%
COST_OPPORTUNITY_MIN_SAVINGS = 100.0

# ============================================================================
# ITEM STATISTICS
# ============================================================================

# Upper bounds on |coefficient of variation|, most volatile first
VOLATILITY_CLASS_BANDS = [
    (0.75, "VERY_HIGH"),
    (0.50, "HIGH"),
    (0.25, "MEDIUM"),
    (0.10, "LOW"),
]
SPORADIC_ZERO_RATIO = 0.7
IRREGULAR_ZERO_RATIO = 0.3
TREND_FORECAST_UPLIFT = 1.1
TREND_FORECAST_DAMPING = 0.9
DEFAULT_STATISTICS_DAYS = 30

# ============================================================================
# DATA QUALITY
# ============================================================================

QUALITY_CATEGORY_WEIGHT = 0.4
QUALITY_PRICE_WEIGHT = 0.6

# ============================================================================
# CAPS
# ============================================================================

MAX_ITEMS_PROCESSED = 20
DEFAULT_TOP_N = 10
TREND_TOP_ITEMS = 10
CATEGORY_TOP_ITEMS = 5

# Recommendation sources, in precedence order, with their caps
RECOMMENDATION_CAPS = {
    "critical_alerts": 5,
    "cost_opportunities": 3,
    "anomalies": 3,
    "stockout_predictions": 3,
}


Granularity = Literal["daily", "weekly", "monthly"]
AnalysisDepth = Literal["basic", "standard", "comprehensive"]


class AnalysisParams(BaseModel):
    """Per-call parameters for one analysis run."""

    start_date: date | None = None
    end_date: date | None = None
    category_id: int | None = None
    granularity: Granularity = "monthly"
    min_confidence: float = Field(
        default=ANOMALY_DEFAULT_MIN_CONFIDENCE, ge=0.0, le=1.0
    )
    depth: AnalysisDepth = "standard"
    top_n: int = Field(default=DEFAULT_TOP_N, ge=1, le=MAX_ITEMS_PROCESSED)
    bin_year: int | None = Field(default=None, ge=1900, le=9999)
    bin_month: int | None = Field(default=None, ge=1, le=12)

    @model_validator(mode="after")
    def _bin_period_pair(self) -> "AnalysisParams":
        if (self.bin_year is None) != (self.bin_month is None):
            raise ValueError("bin_year and bin_month must be given together")
        return self
