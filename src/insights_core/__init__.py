# Consumption analytics over an immutable snapshot of items and records
# Analyzers are plain functions; InsightsOrchestrator runs them together

from .aggregation import aggregate, compute_cost_distribution, safe_divide
from .anomalies import detect_anomalies
from .bins import analyze_bin_variance, compute_variance
from .config import AnalysisParams
from .forecast import forecast_accuracy
from .health import score_health
from .interfaces import ConsumptionRecordSource, ItemSource
from .log import configure_logging, get_logger
from .models import Category, ConsumptionRecord, Item, Snapshot
from .movers import rank_movers
from .narrative import ExecutiveSummary, ExecutiveSummaryWriter
from .orchestrator import InsightsOrchestrator
from .periods import Bucket, TimeWindowResolver, iter_buckets, resolve_window
from .quality import DataQualityChecker, assess_snapshot
from .recommendations import cost_opportunities, synthesize_recommendations
from .results import InsightsReport, SectionStatus
from .seasonality import detect_seasonality
from .statistics import category_statistics, item_statistics
from .trends import analyze_trend, consumption_trends

__all__ = [
    "aggregate",
    "compute_cost_distribution",
    "safe_divide",
    "detect_anomalies",
    "analyze_bin_variance",
    "compute_variance",
    "AnalysisParams",
    "forecast_accuracy",
    "score_health",
    "ConsumptionRecordSource",
    "ItemSource",
    "configure_logging",
    "get_logger",
    "Category",
    "ConsumptionRecord",
    "Item",
    "Snapshot",
    "rank_movers",
    "ExecutiveSummary",
    "ExecutiveSummaryWriter",
    "InsightsOrchestrator",
    "Bucket",
    "TimeWindowResolver",
    "iter_buckets",
    "resolve_window",
    "DataQualityChecker",
    "assess_snapshot",
    "cost_opportunities",
    "synthesize_recommendations",
    "InsightsReport",
    "SectionStatus",
    "detect_seasonality",
    "category_statistics",
    "item_statistics",
    "analyze_trend",
    "consumption_trends",
]
