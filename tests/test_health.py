"""
Inventory health scoring
"""

from datetime import date, timedelta

import pytest

from conftest import make_item, make_snapshot
from insights_core.health import classify_tier, days_remaining, rate_health, score_health

START = date(2025, 1, 1)


class TestDaysRemaining:
    """days_remaining / classify_tier"""

    @pytest.mark.unit
    def test_rounds_up(self):
        """100 units at 3 a day is 33.3, which is 34 whole days"""
        assert days_remaining(100, 30, 10) == 34

    @pytest.mark.unit
    def test_exact(self):
        assert days_remaining(100, 50, 10) == 20

    @pytest.mark.unit
    def test_no_consumption_sentinel(self):
        assert days_remaining(100, 0.0, 10) == 999

    @pytest.mark.unit
    def test_exact_boundary_not_rounded_up(self):
        """10 used over 3 days leaves 20 units for exactly 6 days"""
        assert days_remaining(20, 10, 3) == 6
        assert classify_tier(days_remaining(20, 10, 3)) == "CRITICAL"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "days,tier",
        [
            (0, "CRITICAL"),
            (6, "CRITICAL"),
            (7, "WARNING"),
            (13, "WARNING"),
            (14, "MEDIUM"),
            (29, "MEDIUM"),
            (30, "SAFE"),
            (999, "SAFE"),
        ],
    )
    def test_tier_boundaries(self, days, tier):
        assert classify_tier(days) == tier

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "score,rating", [(100, "EXCELLENT"), (80, "EXCELLENT"), (79, "GOOD"), (40, "FAIR"), (39, "POOR")]
    )
    def test_rating_bands(self, score, rating):
        assert rate_health(score) == rating


class TestScoreHealth:
    """score_health"""

    @pytest.mark.unit
    def test_observed_rate(self, records):
        """Thirty days at 5/day leaves 100 units for 20 days"""
        rows = records.daily(1, START, [5] * 30)
        end = START + timedelta(days=29)
        snapshot = make_snapshot([make_item(1, quantity=100)], rows, START, end)

        row = score_health(snapshot).items[0]

        assert row.observed_daily_rate == 5
        assert row.days_remaining == 20
        assert row.tier == "MEDIUM"
        assert row.expected_stockout_date == end + timedelta(days=20)

    @pytest.mark.unit
    def test_rate_rounding_keeps_critical_tier(self, records):
        """A 3.3333 display rate does not turn 6 days into 7"""
        rows = records.daily(1, START, [4, 3, 3])
        snapshot = make_snapshot(
            [make_item(1, quantity=20)], rows, START, START + timedelta(days=2)
        )

        result = score_health(snapshot)
        row = result.items[0]

        assert row.observed_daily_rate == 3.3333
        assert row.days_remaining == 6
        assert row.tier == "CRITICAL"
        assert result.critical_count == 1

    @pytest.mark.unit
    def test_unconsumed_item_is_safe(self):
        snapshot = make_snapshot(
            [make_item(1, quantity=50)], [], START, START + timedelta(days=9)
        )
        row = score_health(snapshot).items[0]
        assert row.days_remaining == 999
        assert row.tier == "SAFE"
        assert row.expected_stockout_date is None

    @pytest.mark.unit
    def test_score_and_ordering(self, records):
        """One item per tier scores (100 + 50 + 50 + 0) / 4 = 50"""
        items = [
            make_item(1, quantity=100),
            make_item(2, quantity=10),
            make_item(3, quantity=20),
            make_item(4, quantity=5),
        ]
        rows = []
        for item in items:
            rows += records.daily(item.id, START, [1] * 10)

        result = score_health(make_snapshot(items, rows, START, START + timedelta(days=9)))

        assert result.total_items == 4
        assert (result.critical_count, result.warning_count) == (1, 1)
        assert (result.medium_count, result.safe_count) == (1, 1)
        assert result.overall_score == 50
        assert result.rating == "FAIR"
        assert [r.tier for r in result.items] == ["CRITICAL", "WARNING", "MEDIUM", "SAFE"]

    @pytest.mark.unit
    def test_inventory_value(self):
        items = [make_item(1, price=2.5, quantity=10), make_item(2, price=None, quantity=10)]
        result = score_health(make_snapshot(items, [], START, START))
        assert result.total_inventory_value == 25

    @pytest.mark.unit
    def test_reorder_level(self):
        items = [make_item(1, quantity=10, reorder_level=10), make_item(2, quantity=11, reorder_level=10)]
        result = score_health(make_snapshot(items, [], START, START))
        flags = {r.item_id: r.below_reorder_level for r in result.items}
        assert flags == {1: True, 2: False}

    @pytest.mark.unit
    def test_no_items(self):
        """No items scores zero"""
        result = score_health(make_snapshot([], [], START, START))
        assert result.overall_score == 0
        assert result.rating == "POOR"
        assert result.items == []
