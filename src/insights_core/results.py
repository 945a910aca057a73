"""
Result records for every analyzer.

Uses Pydantic models so each section of an analysis has a fixed,
serialisable shape (``model_dump()``) instead of ad hoc dictionaries.
"""

from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class SectionStatus(str, Enum):
    """How a section of the report was produced."""

    OK = "ok"
    EMPTY_DATASET = "empty_dataset"  # No records in window
    INSUFFICIENT_SAMPLE = "insufficient_sample"  # Below the analyzer's minimum
    FAILED = "failed"  # Raised; replaced by its empty result


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class Aggregate(BaseModel):
    """Totals over a subset of records."""

    quantity: float = 0.0
    cost: float = 0.0
    count: int = 0


class CategoryCost(BaseModel):
    category_id: int | None
    category_name: str
    total_quantity: float
    total_cost: float
    percentage: float = Field(description="Share of total cost, 0-100")


class CostDistribution(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    total_cost: float = 0.0
    categories: list[CategoryCost] = Field(default_factory=list)


class DateRange(BaseModel):
    min_date: date
    max_date: date
    available_months: int
    has_data: bool


# ---------------------------------------------------------------------------
# Bin variance
# ---------------------------------------------------------------------------


class BinTotals(BaseModel):
    start_date: date
    end_date: date
    consumption: float = 0.0
    cost: float = 0.0
    record_count: int = 0


class VarianceResult(BaseModel):
    """Second half of a month minus the first half."""

    consumption: float = 0.0
    cost: float = 0.0
    percent: float = Field(default=0.0, description="Consumption variance vs bin 1, %")
    cost_percent: float = 0.0


class MonthBinVariance(BaseModel):
    year: int
    month: int
    label: str
    bin1: BinTotals
    bin2: BinTotals
    variance: VarianceResult

    @property
    def has_records(self) -> bool:
        return self.bin1.record_count + self.bin2.record_count > 0


class BinVarianceReport(BaseModel):
    category_id: int | None = None
    months: list[MonthBinVariance] = Field(default_factory=list)
    last_month: MonthBinVariance | None = None


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------

TrendDirection = Literal["INCREASING", "DECREASING", "STABLE", "INSUFFICIENT_DATA"]


class VolatilityResult(BaseModel):
    absolute: float = 0.0
    percent: float = 0.0
    level: Literal["HIGH", "LOW"] = "LOW"


class TrendResult(BaseModel):
    direction: TrendDirection = "INSUFFICIENT_DATA"
    strength: Literal["STRONG", "MODERATE"] | None = None
    slope: float = 0.0
    normalized_slope: float = 0.0
    mean: float = 0.0
    points: int = 0
    volatility: VolatilityResult = Field(default_factory=VolatilityResult)


class SeriesPoint(BaseModel):
    label: str
    start_date: date
    end_date: date
    quantity: float = 0.0
    cost: float = 0.0


class LabeledSeries(BaseModel):
    """A bucketed series for one category or item."""

    key_id: int | None
    name: str
    points: list[SeriesPoint] = Field(default_factory=list)


class ConsumptionTrends(BaseModel):
    granularity: str
    start_date: date | None = None
    end_date: date | None = None
    totals: list[SeriesPoint] = Field(default_factory=list)
    by_category: list[LabeledSeries] = Field(default_factory=list)
    by_item: list[LabeledSeries] = Field(default_factory=list)
    cost_trend: TrendResult = Field(default_factory=TrendResult)


# ---------------------------------------------------------------------------
# Anomalies
# ---------------------------------------------------------------------------


class OutlierPoint(BaseModel):
    consumption_date: date
    value: float
    deviation: float = Field(description="Value minus the item's mean")
    z_score: float


class AnomalyResult(BaseModel):
    item_id: int
    item_name: str | None = None
    category_name: str | None = None
    total_records: int
    mean: float
    stddev: float
    outlier_count: int
    confidence: float
    outliers: list[OutlierPoint] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Seasonality
# ---------------------------------------------------------------------------


class SeasonalityResult(BaseModel):
    status: SectionStatus = SectionStatus.INSUFFICIENT_SAMPLE
    distinct_months: int = 0
    years_covered: int = 0
    monthly_costs: dict[str, float] = Field(default_factory=dict)
    peak_month: str | None = None
    trough_month: str | None = None
    variance: float = 0.0
    variance_percent: float = 0.0
    is_seasonal: bool = False


# ---------------------------------------------------------------------------
# Forecast accuracy
# ---------------------------------------------------------------------------

ForecastRating = Literal["EXCELLENT", "GOOD", "FAIR", "NEEDS_IMPROVEMENT", "NO_FORECAST"]


class ItemForecastAccuracy(BaseModel):
    item_id: int
    item_name: str
    forecast_daily_rate: float
    forecast: float
    actual: float
    error: float = Field(description="Actual minus forecast")


class ForecastAccuracyResult(BaseModel):
    days_in_window: int = 0
    items_evaluated: int = 0
    total_forecast: float = 0.0
    total_actual: float = 0.0
    accuracy: float = 0.0
    rating: ForecastRating = "NO_FORECAST"
    largest_misses: list[ItemForecastAccuracy] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

HealthTier = Literal["CRITICAL", "WARNING", "MEDIUM", "SAFE"]


class ItemCoverage(BaseModel):
    """One row of the stock-level table."""

    item_id: int
    item_name: str
    category_name: str | None = None
    current_quantity: float
    unit_price: float
    inventory_value: float
    observed_daily_rate: float
    days_remaining: int
    tier: HealthTier
    expected_stockout_date: date | None = None
    below_reorder_level: bool = False
    stock_alert_level: str | None = None


class HealthScore(BaseModel):
    total_items: int = 0
    critical_count: int = 0
    warning_count: int = 0
    medium_count: int = 0
    safe_count: int = 0
    overall_score: int = 0
    rating: Literal["EXCELLENT", "GOOD", "FAIR", "POOR"] = "POOR"
    total_inventory_value: float = 0.0
    items: list[ItemCoverage] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Top movers
# ---------------------------------------------------------------------------


class MoverEntry(BaseModel):
    item_id: int
    item_name: str | None = None
    category_name: str | None = None
    total_quantity: float = 0.0
    total_cost: float = 0.0
    first_half_quantity: float = 0.0
    second_half_quantity: float = 0.0
    growth_percent: float = 0.0


class TopMovers(BaseModel):
    by_volume: list[MoverEntry] = Field(default_factory=list)
    by_cost: list[MoverEntry] = Field(default_factory=list)
    fastest_growing: list[MoverEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Recommendation inputs and output
# ---------------------------------------------------------------------------


class CostOpportunity(BaseModel):
    item_id: int
    item_name: str | None = None
    baseline_monthly_cost: float
    latest_monthly_cost: float
    latest_month: str
    potential_savings: float


class StockoutPrediction(BaseModel):
    item_id: int
    item_name: str
    days_remaining: int
    predicted_stockout_date: date | None
    tier: HealthTier


RecommendationCategory = Literal[
    "STOCK_ALERT", "COST_OPTIMIZATION", "ANOMALY", "STOCKOUT_PREDICTION"
]
Level = Literal["HIGH", "MEDIUM", "LOW"]


class Recommendation(BaseModel):
    priority: int
    category: RecommendationCategory
    title: str
    description: str
    action: str
    impact: Level
    effort: Level
    related_items: list[int] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class ItemStatistics(BaseModel):
    item_id: int
    item_name: str | None = None
    period_days: int
    total_records: int = 0
    total_consumption: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    standard_deviation: float = 0.0
    coefficient_of_variation: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    range: float = 0.0
    volatility_class: str = "VERY_LOW"
    trend: TrendDirection = "INSUFFICIENT_DATA"
    consumption_pattern: Literal["SPORADIC", "IRREGULAR", "REGULAR", "NO_DATA"] = "NO_DATA"
    days_with_activity: int = 0
    activity_rate: float = 0.0
    day_of_week_averages: dict[str, float] = Field(default_factory=dict)
    weekday_average: float = 0.0
    weekend_average: float = 0.0
    percentile_25: float = 0.0
    percentile_75: float = 0.0
    percentile_90: float = 0.0
    forecast_next_period: float = 0.0


class CategoryItemTotal(BaseModel):
    item_id: int
    item_name: str | None = None
    total_consumption: float
    average_consumption: float
    coefficient_of_variation: float


class CategoryStatistics(BaseModel):
    category_id: int | None
    category_name: str
    total_items: int = 0
    total_records: int = 0
    total_consumption: float = 0.0
    category_cv: float = 0.0
    category_volatility: str = "VERY_LOW"
    items: list[CategoryItemTotal] = Field(default_factory=list)
    top_items: list[CategoryItemTotal] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Data quality
# ---------------------------------------------------------------------------


class DataQualityIssue(BaseModel):
    """A single data quality issue found in the data."""

    column: str
    issue_type: str  # e.g. "missing", "missing_price", "unknown_item", "duplicate"
    severity: Literal["critical", "warning", "info"]
    count: int
    percentage: float
    sample_values: list[Any] = Field(default_factory=list)
    description: str = ""


class DataQualityReport(BaseModel):
    """Quality report for one data source, or for an analysis snapshot."""

    source_name: str
    total_rows: int = 0
    issues: list[DataQualityIssue] = Field(default_factory=list)
    # Snapshot completeness, filled in for snapshot reports only
    total_items: int = 0
    total_records: int = 0
    items_without_price: int = 0
    items_without_category: int = 0
    score: int = 100

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def has_critical_issues(self) -> bool:
        return len(self.critical_issues) > 0

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": len(self.critical_issues),
            "warnings": len(self.warning_issues),
            "info": len([i for i in self.issues if i.severity == "info"]),
        }


# ---------------------------------------------------------------------------
# Full report
# ---------------------------------------------------------------------------


class SnapshotSummary(BaseModel):
    start_date: date
    end_date: date
    days_in_window: int
    category_id: int | None = None
    item_count: int = 0
    record_count: int = 0
    totals: Aggregate = Field(default_factory=Aggregate)


class InsightsReport(BaseModel):
    """Every section of one analysis run over a single snapshot."""

    summary: SnapshotSummary
    sections: dict[str, SectionStatus] = Field(default_factory=dict)
    trends: ConsumptionTrends | None = None
    health: HealthScore | None = None
    top_movers: TopMovers | None = None
    bin_variance: BinVarianceReport | None = None
    anomalies: list[AnomalyResult] | None = None
    forecast_accuracy: ForecastAccuracyResult | None = None
    cost_opportunities: list[CostOpportunity] | None = None
    stockout_predictions: list[StockoutPrediction] | None = None
    recommendations: list[Recommendation] | None = None
    cost_distribution: CostDistribution | None = None
    seasonality: SeasonalityResult | None = None
    item_statistics: list[ItemStatistics] | None = None
    category_statistics: list[CategoryStatistics] | None = None
    data_quality: DataQualityReport | None = None

    @property
    def failed_sections(self) -> list[str]:
        return [k for k, v in self.sections.items() if v == SectionStatus.FAILED]
