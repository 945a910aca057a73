"""
Insights orchestrator.

Resolves the analysis window, loads one immutable snapshot from the item
and record sources, and runs every analyzer over that same snapshot.
Exceptions are caught here and nowhere else: a failing section is logged,
marked FAILED and replaced by its empty result while the other sections
are unaffected.
"""

from datetime import date, timedelta
from typing import Any, Callable

from .aggregation import aggregate, compute_cost_distribution
from .anomalies import detect_anomalies
from .bins import analyze_bin_variance
from .config import DEFAULT_STATISTICS_DAYS, AnalysisParams
from .forecast import forecast_accuracy
from .health import score_health
from .interfaces import ConsumptionRecordSource, ItemSource
from .log import get_logger
from .models import Snapshot
from .movers import rank_movers
from .periods import TimeWindowResolver, month_end
from .quality import assess_snapshot
from .recommendations import (
    cost_opportunities,
    critical_alerts,
    stockout_predictions,
    synthesize_recommendations,
)
from .results import (
    BinVarianceReport,
    CategoryStatistics,
    ConsumptionTrends,
    CostDistribution,
    DataQualityReport,
    DateRange,
    ForecastAccuracyResult,
    HealthScore,
    InsightsReport,
    ItemStatistics,
    SectionStatus,
    SeasonalityResult,
    SnapshotSummary,
    TopMovers,
)
from .seasonality import detect_seasonality
from .statistics import category_statistics, item_statistics, top_item_statistics
from .trends import consumption_trends

logger = get_logger(__name__)

BASIC_SECTIONS = ("trends", "health", "top_movers")
STANDARD_SECTIONS = BASIC_SECTIONS + (
    "bin_variance",
    "anomalies",
    "forecast_accuracy",
    "cost_opportunities",
    "stockout_predictions",
    "recommendations",
    "cost_distribution",
)
COMPREHENSIVE_SECTIONS = STANDARD_SECTIONS + (
    "seasonality",
    "item_statistics",
    "category_statistics",
    "data_quality",
)
DEPTH_SECTIONS = {
    "basic": BASIC_SECTIONS,
    "standard": STANDARD_SECTIONS,
    "comprehensive": COMPREHENSIVE_SECTIONS,
}

# Sections computed from items alone; an empty window does not make them empty
ITEM_SECTIONS = {"health", "forecast_accuracy", "stockout_predictions", "data_quality"}


class InsightsOrchestrator:
    """
    Runs consumption analytics over a snapshot of the data sources.

    Example:
        orchestrator = InsightsOrchestrator(item_source, record_source)
        report = orchestrator.analyze(AnalysisParams(depth="comprehensive"))
        report.recommendations
    """

    def __init__(
        self,
        items: ItemSource,
        records: ConsumptionRecordSource,
        today: date | None = None,
    ):
        self.items = items
        self.records = records
        self.resolver = TimeWindowResolver(records, today=today)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def load_snapshot(self, params: AnalysisParams | None = None) -> Snapshot:
        """
        Resolve the window and read items and records once.

        When an explicit bin month is requested the records of that whole
        month are loaded as well, even if it lies outside the window.
        """
        params = params or AnalysisParams()
        start, end = self.resolver.resolve(
            params.start_date, params.end_date, category_id=params.category_id
        )

        load_start, load_end = start, end
        if params.bin_year is not None and params.bin_month is not None:
            first = date(params.bin_year, params.bin_month, 1)
            load_start = min(load_start, first)
            load_end = max(load_end, month_end(first))

        items = self.items.list_items(category_id=params.category_id)
        records = self.records.list_records(
            start=load_start, end=load_end, category_id=params.category_id
        )
        snapshot = Snapshot(
            start=start,
            end=end,
            items=tuple(items),
            records=tuple(records),
            category_id=params.category_id,
        )
        logger.info(
            "Snapshot %s..%s: %d items, %d records (category=%s)",
            start,
            end,
            len(snapshot.items),
            len(snapshot.window_frame),
            params.category_id,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Section isolation
    # ------------------------------------------------------------------

    def _run_section(
        self,
        name: str,
        snapshot: Snapshot,
        compute: Callable[[], Any],
        empty: Callable[[], Any],
        sections: dict[str, SectionStatus] | None = None,
    ) -> Any:
        """Run one analyzer, recording its status; failures yield `empty()`."""
        try:
            result = compute()
        except Exception:
            logger.exception("Section %s failed; returning its empty result", name)
            status, result = SectionStatus.FAILED, empty()
        else:
            if isinstance(result, SeasonalityResult):
                status = result.status
            elif snapshot.is_empty and name not in ITEM_SECTIONS:
                status = SectionStatus.EMPTY_DATASET
            else:
                status = SectionStatus.OK
        if sections is not None:
            sections[name] = status
        return result

    # ------------------------------------------------------------------
    # Full analysis
    # ------------------------------------------------------------------

    def analyze(self, params: AnalysisParams | None = None, **overrides) -> InsightsReport:
        """
        Run every section selected by `params.depth` over one snapshot.

        Args:
            params: Per-call parameters; defaults to AnalysisParams()
            **overrides: Field overrides, validated as AnalysisParams

        Raises:
            pydantic.ValidationError: If the parameters are invalid
        """
        if params is None or overrides:
            base = params.model_dump() if params else {}
            params = AnalysisParams(**{**base, **overrides})

        snapshot = self.load_snapshot(params)
        selected = DEPTH_SECTIONS[params.depth]
        sections: dict[str, SectionStatus] = {}
        out: dict[str, Any] = {}

        def run(name, compute, empty):
            out[name] = self._run_section(name, snapshot, compute, empty, sections)
            return out[name]

        run(
            "trends",
            lambda: consumption_trends(snapshot, params.granularity),
            lambda: ConsumptionTrends(granularity=params.granularity),
        )
        health = run("health", lambda: score_health(snapshot), HealthScore)
        run("top_movers", lambda: rank_movers(snapshot, params.top_n), TopMovers)

        if "bin_variance" in selected:
            run(
                "bin_variance",
                lambda: analyze_bin_variance(snapshot, params.bin_year, params.bin_month),
                BinVarianceReport,
            )
            anomalies = run(
                "anomalies", lambda: detect_anomalies(snapshot, params.min_confidence), list
            )
            run("forecast_accuracy", lambda: forecast_accuracy(snapshot), ForecastAccuracyResult)
            opportunities = run("cost_opportunities", lambda: cost_opportunities(snapshot), list)
            predictions = run("stockout_predictions", lambda: stockout_predictions(health), list)
            run(
                "recommendations",
                lambda: synthesize_recommendations(
                    critical_alerts(health), opportunities, anomalies, predictions
                ),
                list,
            )
            run("cost_distribution", lambda: compute_cost_distribution(snapshot), CostDistribution)

        if "seasonality" in selected:
            run("seasonality", lambda: detect_seasonality(snapshot), SeasonalityResult)
            run("item_statistics", lambda: top_item_statistics(snapshot), list)
            run("category_statistics", lambda: category_statistics(snapshot), list)
            run(
                "data_quality",
                lambda: assess_snapshot(snapshot),
                lambda: DataQualityReport(source_name="snapshot"),
            )

        report = InsightsReport(summary=self._summary(snapshot), sections=sections, **out)
        if report.failed_sections:
            logger.warning("Analysis finished with failed sections: %s", report.failed_sections)
        else:
            logger.info("Analysis finished: %d sections", len(sections))
        return report

    def _summary(self, snapshot: Snapshot) -> SnapshotSummary:
        totals = aggregate(snapshot.window_frame)
        return SnapshotSummary(
            start_date=snapshot.start,
            end_date=snapshot.end,
            days_in_window=snapshot.days_in_window,
            category_id=snapshot.category_id,
            item_count=len(snapshot.items),
            record_count=totals.count,
            totals=totals,
        )

    # ------------------------------------------------------------------
    # Focused entry points
    # ------------------------------------------------------------------

    def _focused(self, name: str, params: AnalysisParams, compute, empty):
        snapshot = self.load_snapshot(params)
        return self._run_section(name, snapshot, lambda: compute(snapshot), empty)

    def date_range(self, category_id: int | None = None) -> DateRange:
        """Span of consumption data available for analysis."""
        return self.resolver.date_range(category_id)

    def consumption_trends(self, **params) -> ConsumptionTrends:
        p = AnalysisParams(**params)
        return self._focused(
            "trends",
            p,
            lambda s: consumption_trends(s, p.granularity),
            lambda: ConsumptionTrends(granularity=p.granularity),
        )

    def bin_variance(
        self,
        year: int | None = None,
        month: int | None = None,
        category_id: int | None = None,
        **params,
    ) -> BinVarianceReport:
        p = AnalysisParams(bin_year=year, bin_month=month, category_id=category_id, **params)
        return self._focused(
            "bin_variance",
            p,
            lambda s: analyze_bin_variance(s, year, month),
            BinVarianceReport,
        )

    def anomalies(self, **params):
        p = AnalysisParams(**params)
        return self._focused(
            "anomalies", p, lambda s: detect_anomalies(s, p.min_confidence), list
        )

    def seasonality(self, **params) -> SeasonalityResult:
        return self._focused(
            "seasonality", AnalysisParams(**params), detect_seasonality, SeasonalityResult
        )

    def forecast_accuracy(self, **params) -> ForecastAccuracyResult:
        return self._focused(
            "forecast_accuracy",
            AnalysisParams(**params),
            forecast_accuracy,
            ForecastAccuracyResult,
        )

    def health(self, **params) -> HealthScore:
        return self._focused("health", AnalysisParams(**params), score_health, HealthScore)

    def top_movers(self, **params) -> TopMovers:
        p = AnalysisParams(**params)
        return self._focused("top_movers", p, lambda s: rank_movers(s, p.top_n), TopMovers)

    def cost_distribution(self, **params) -> CostDistribution:
        return self._focused(
            "cost_distribution",
            AnalysisParams(**params),
            compute_cost_distribution,
            CostDistribution,
        )

    def recommendations(self, **params):
        """Prioritized recommendations (runs the standard sections they draw on)."""
        report = self.analyze(AnalysisParams(**{**params, "depth": "standard"}))
        return report.recommendations

    def _statistics_window(self, days: int, category_id: int | None) -> AnalysisParams:
        # Window of `days` days ending at the latest data, or today without data
        _, data_max = self.resolver.data_bounds(category_id)
        end = data_max or self.resolver.today or date.today()
        return AnalysisParams(
            start_date=end - timedelta(days=days - 1), end_date=end, category_id=category_id
        )

    def item_statistics(self, item_id: int, days: int = DEFAULT_STATISTICS_DAYS) -> ItemStatistics:
        p = self._statistics_window(days, None)
        return self._focused(
            "item_statistics",
            p,
            lambda s: item_statistics(s, item_id),
            lambda: ItemStatistics(item_id=item_id, period_days=days),
        )

    def category_statistics(
        self, category_id: int, days: int = DEFAULT_STATISTICS_DAYS
    ) -> CategoryStatistics | None:
        """Statistics for one category; None when it has no records in the window."""
        p = self._statistics_window(days, category_id)
        results = self._focused("category_statistics", p, category_statistics, list)
        return next((c for c in results if c.category_id == category_id), None)

    def data_quality(self, **params) -> DataQualityReport:
        return self._focused(
            "data_quality",
            AnalysisParams(**params),
            assess_snapshot,
            lambda: DataQualityReport(source_name="snapshot"),
        )
