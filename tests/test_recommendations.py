"""
Recommendation sources and synthesis
"""

from datetime import date

import pytest

from conftest import make_item, make_snapshot
from insights_core.config import RECOMMENDATION_CAPS
from insights_core.recommendations import (
    cost_opportunities,
    critical_alerts,
    stockout_predictions,
    synthesize_recommendations,
)
from insights_core.results import (
    AnomalyResult,
    CostOpportunity,
    HealthScore,
    ItemCoverage,
    StockoutPrediction,
)


def _coverage(item_id, days, tier):
    return ItemCoverage(
        item_id=item_id,
        item_name=f"Item {item_id}",
        current_quantity=days,
        unit_price=1.0,
        inventory_value=days,
        observed_daily_rate=1.0,
        days_remaining=days,
        tier=tier,
    )


def _opportunity(item_id, savings=200.0):
    return CostOpportunity(
        item_id=item_id,
        item_name=f"Item {item_id}",
        baseline_monthly_cost=100.0,
        latest_monthly_cost=100.0 + savings,
        latest_month="Mar 2025",
        potential_savings=savings,
    )


def _anomaly(item_id):
    return AnomalyResult(
        item_id=item_id, total_records=10, mean=10, stddev=5, outlier_count=1, confidence=0.7
    )


def _prediction(item_id, days=10, tier="WARNING"):
    return StockoutPrediction(
        item_id=item_id,
        item_name=f"Item {item_id}",
        days_remaining=days,
        predicted_stockout_date=None,
        tier=tier,
    )


# ============================================================================
# Sources
# ============================================================================


class TestHealthSources:
    """critical_alerts / stockout_predictions"""

    @pytest.mark.unit
    def test_split_by_tier(self):
        health = HealthScore(
            items=[
                _coverage(1, 3, "CRITICAL"),
                _coverage(2, 20, "MEDIUM"),
                _coverage(3, 1, "CRITICAL"),
                _coverage(4, 8, "WARNING"),
                _coverage(5, 999, "SAFE"),
            ]
        )

        assert [r.item_id for r in critical_alerts(health)] == [3, 1]
        predictions = stockout_predictions(health)
        assert [p.item_id for p in predictions] == [4, 2]
        assert predictions[0].tier == "WARNING"


class TestCostOpportunities:
    """cost_opportunities"""

    def _snapshot(self, records, monthly_costs):
        rows = [
            records.one(1, date(2025, month, 10), cost)
            for month, cost in enumerate(monthly_costs, start=1)
        ]
        return make_snapshot([make_item(1)], rows, date(2025, 1, 1), date(2025, 3, 31))

    @pytest.mark.unit
    def test_spike_above_baseline(self, records):
        """Costs 100/100/400 average 200, so the spike saves 200"""
        result = cost_opportunities(self._snapshot(records, [100, 100, 400]))

        assert len(result) == 1
        assert result[0].baseline_monthly_cost == 200
        assert result[0].latest_monthly_cost == 400
        assert result[0].potential_savings == 200
        assert result[0].latest_month == "Mar 2025"

    @pytest.mark.unit
    def test_below_min_savings(self, records):
        assert cost_opportunities(self._snapshot(records, [100, 100, 150])) == []

    @pytest.mark.unit
    def test_empty_months_count_as_zero(self, records):
        """An item seen only in the last month has a third of it as baseline"""
        rows = [records.one(1, date(2025, 3, 10), 300)]
        snapshot = make_snapshot([make_item(1)], rows, date(2025, 1, 1), date(2025, 3, 31))

        result = cost_opportunities(snapshot)

        assert result[0].baseline_monthly_cost == 100
        assert result[0].potential_savings == 200

    @pytest.mark.unit
    def test_single_month_window(self, records):
        rows = [records.one(1, date(2025, 1, 10), 1000)]
        snapshot = make_snapshot([make_item(1)], rows, date(2025, 1, 1), date(2025, 1, 31))
        assert cost_opportunities(snapshot) == []


# ============================================================================
# Synthesis
# ============================================================================


class TestSynthesize:
    """synthesize_recommendations"""

    @pytest.mark.unit
    def test_caps_and_priorities(self):
        """Each source is capped; priorities count down to 1"""
        result = synthesize_recommendations(
            [_coverage(i, 1, "CRITICAL") for i in range(7)],
            [_opportunity(i) for i in range(5)],
            [_anomaly(i) for i in range(4)],
            [_prediction(i) for i in range(6)],
        )

        assert len(result) == sum(RECOMMENDATION_CAPS.values()) == 14
        assert [r.priority for r in result] == list(range(14, 0, -1))
        categories = [r.category for r in result]
        assert categories == (
            ["STOCK_ALERT"] * 5
            + ["COST_OPTIMIZATION"] * 3
            + ["ANOMALY"] * 3
            + ["STOCKOUT_PREDICTION"] * 3
        )

    @pytest.mark.unit
    def test_same_item_not_deduplicated(self):
        result = synthesize_recommendations(
            [_coverage(1, 1, "CRITICAL")], [], [_anomaly(1)], []
        )
        assert [r.related_items for r in result] == [[1], [1]]

    @pytest.mark.unit
    def test_impact_levels(self):
        result = synthesize_recommendations(
            [],
            [_opportunity(1, savings=1500), _opportunity(2, savings=200)],
            [],
            [_prediction(3, tier="WARNING"), _prediction(4, days=20, tier="MEDIUM")],
        )
        assert [r.impact for r in result] == ["HIGH", "MEDIUM", "MEDIUM", "LOW"]

    @pytest.mark.unit
    def test_custom_caps(self):
        caps = {"critical_alerts": 1, "cost_opportunities": 0, "anomalies": 0, "stockout_predictions": 1}
        result = synthesize_recommendations(
            [_coverage(1, 1, "CRITICAL"), _coverage(2, 2, "CRITICAL")], [], [], [_prediction(3)], caps
        )
        assert [r.related_items[0] for r in result] == [1, 3]

    @pytest.mark.unit
    def test_partial_caps_keep_defaults(self):
        """Overriding one cap leaves the other sources at their defaults"""
        result = synthesize_recommendations(
            [_coverage(i, 1, "CRITICAL") for i in range(7)],
            [],
            [_anomaly(i) for i in range(4)],
            [],
            caps={"anomalies": 1},
        )
        categories = [r.category for r in result]
        assert categories.count("STOCK_ALERT") == RECOMMENDATION_CAPS["critical_alerts"]
        assert categories.count("ANOMALY") == 1

    @pytest.mark.unit
    def test_nothing_to_recommend(self):
        assert synthesize_recommendations([], [], [], []) == []
