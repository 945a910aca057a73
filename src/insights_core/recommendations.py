"""
Recommendation sources and the synthesizer that merges them.

Sources, in precedence order:
- critical alerts: CRITICAL tier items from the health scorer
- cost opportunities: items whose latest month costs well above baseline
- anomalies: items with statistical outliers
- stockout predictions: WARNING / MEDIUM tier items from the health scorer

Each source is already ranked. The synthesizer takes a capped number of
entries from each in order and numbers them with strictly decreasing
priorities. Items are not deduplicated across sources.
"""

import pandas as pd

from .aggregation import quantize
from .config import (
    COST_OPPORTUNITY_MIN_SAVINGS,
    COST_OPPORTUNITY_THRESHOLD,
    MAX_ITEMS_PROCESSED,
    RECOMMENDATION_CAPS,
)
from .log import get_logger
from .models import Snapshot
from .periods import buckets
from .results import (
    AnomalyResult,
    CostOpportunity,
    HealthScore,
    ItemCoverage,
    Recommendation,
    StockoutPrediction,
)

logger = get_logger(__name__)

HIGH_SAVINGS = 1000.0


def critical_alerts(health: HealthScore) -> list[ItemCoverage]:
    """CRITICAL tier items, fewest days remaining first."""
    rows = [r for r in health.items if r.tier == "CRITICAL"]
    return sorted(rows, key=lambda r: (r.days_remaining, r.item_id))


def stockout_predictions(health: HealthScore) -> list[StockoutPrediction]:
    """WARNING and MEDIUM tier items, fewest days remaining first."""
    rows = [r for r in health.items if r.tier in ("WARNING", "MEDIUM")]
    rows.sort(key=lambda r: (r.days_remaining, r.item_id))
    return [
        StockoutPrediction(
            item_id=r.item_id,
            item_name=r.item_name,
            days_remaining=r.days_remaining,
            predicted_stockout_date=r.expected_stockout_date,
            tier=r.tier,
        )
        for r in rows
    ]


def cost_opportunities(
    snapshot: Snapshot,
    threshold: float = COST_OPPORTUNITY_THRESHOLD,
    min_savings: float = COST_OPPORTUNITY_MIN_SAVINGS,
    max_items: int = MAX_ITEMS_PROCESSED,
) -> list[CostOpportunity]:
    """
    Items whose latest month cost exceeds their monthly baseline.

    The baseline is the mean monthly cost over every month of the window
    (months without records count as zero). An item qualifies when its
    latest month is more than `threshold` above baseline and the excess is
    at least `min_savings`. Ranked by potential savings.
    """
    records = snapshot.window_frame
    months = buckets(snapshot.start, snapshot.end, "monthly")
    if len(records) == 0 or len(months) < 2:
        logger.debug("Cost opportunities need at least two months of records")
        return []

    month_keys = records["consumption_date"].dt.to_period("M")
    window_months = [pd.Period(pd.Timestamp(b.start), freq="M") for b in months]
    monthly = (
        records.assign(month=month_keys)
        .groupby(["item_id", "month"])["cost"]
        .sum()
        .unstack(fill_value=0.0)
        .reindex(columns=window_months, fill_value=0.0)
    )
    names = records.groupby("item_id")["item_name"].first()
    latest = months[-1]

    found = []
    for item_id, row in monthly.iterrows():
        baseline = float(row.mean())
        latest_cost = float(row.iloc[-1])
        savings = latest_cost - baseline
        if latest_cost > baseline * (1 + threshold) and savings >= min_savings:
            found.append(
                CostOpportunity(
                    item_id=int(item_id),
                    item_name=names.get(item_id),
                    baseline_monthly_cost=quantize(baseline),
                    latest_monthly_cost=quantize(latest_cost),
                    latest_month=latest.label,
                    potential_savings=quantize(savings),
                )
            )

    found.sort(key=lambda o: (-o.potential_savings, o.item_id))
    logger.info("Cost opportunities: %d items above baseline", len(found))
    return found[:max_items]


def _critical_entry(row: ItemCoverage) -> dict:
    return dict(
        category="STOCK_ALERT",
        title=f"Critical stock level: {row.item_name}",
        description=(
            f"{row.item_name} has {row.days_remaining} days of stock left "
            f"at {row.observed_daily_rate} units/day."
        ),
        action=f"Reorder {row.item_name} immediately.",
        impact="HIGH",
        effort="LOW",
        related_items=[row.item_id],
    )


def _cost_entry(opportunity: CostOpportunity) -> dict:
    return dict(
        category="COST_OPTIMIZATION",
        title=f"Cost spike: {opportunity.item_name}",
        description=(
            f"{opportunity.latest_month} cost {opportunity.latest_monthly_cost:.2f} "
            f"against a monthly baseline of {opportunity.baseline_monthly_cost:.2f}."
        ),
        action=(
            f"Review usage of {opportunity.item_name}; potential savings "
            f"{opportunity.potential_savings:.2f}."
        ),
        impact="HIGH" if opportunity.potential_savings >= HIGH_SAVINGS else "MEDIUM",
        effort="MEDIUM",
        related_items=[opportunity.item_id],
    )


def _anomaly_entry(anomaly: AnomalyResult) -> dict:
    return dict(
        category="ANOMALY",
        title=f"Unusual consumption: {anomaly.item_name}",
        description=(
            f"{anomaly.outlier_count} of {anomaly.total_records} days deviate more than "
            f"two standard deviations from the mean ({anomaly.confidence:.0%} confidence)."
        ),
        action=f"Check recording and usage of {anomaly.item_name} on the flagged days.",
        impact="MEDIUM",
        effort="LOW",
        related_items=[anomaly.item_id],
    )


def _stockout_entry(prediction: StockoutPrediction) -> dict:
    when = (
        f" around {prediction.predicted_stockout_date.isoformat()}"
        if prediction.predicted_stockout_date
        else ""
    )
    return dict(
        category="STOCKOUT_PREDICTION",
        title=f"Stockout expected: {prediction.item_name}",
        description=(
            f"{prediction.item_name} is expected to run out in "
            f"{prediction.days_remaining} days{when}."
        ),
        action=f"Plan a reorder for {prediction.item_name}.",
        impact="MEDIUM" if prediction.tier == "WARNING" else "LOW",
        effort="LOW",
        related_items=[prediction.item_id],
    )


def synthesize_recommendations(
    critical: list[ItemCoverage],
    opportunities: list[CostOpportunity],
    anomalies: list[AnomalyResult],
    predictions: list[StockoutPrediction],
    caps: dict[str, int] | None = None,
) -> list[Recommendation]:
    """
    Merge ranked sources into one prioritized list.

    The first entry gets the highest priority and the last gets 1, so
    priorities strictly decrease in source-then-rank order. The list never
    exceeds the sum of the per-source caps. `caps` may name only some
    sources; the others keep their default caps.
    """
    caps = {**RECOMMENDATION_CAPS, **(caps or {})}
    drafts = []
    drafts += [_critical_entry(r) for r in critical[: caps["critical_alerts"]]]
    drafts += [_cost_entry(o) for o in opportunities[: caps["cost_opportunities"]]]
    drafts += [_anomaly_entry(a) for a in anomalies[: caps["anomalies"]]]
    drafts += [_stockout_entry(p) for p in predictions[: caps["stockout_predictions"]]]

    total = len(drafts)
    recommendations = [
        Recommendation(priority=total - i, **draft) for i, draft in enumerate(drafts)
    ]
    logger.info("Synthesized %d recommendations", total)
    return recommendations
