"""
Top movers
"""

from datetime import date

import pytest

from conftest import make_item, make_snapshot
from insights_core.movers import rank_movers, split_window

START, END = date(2025, 1, 1), date(2025, 1, 10)


class TestSplitWindow:
    """split_window"""

    @pytest.mark.unit
    def test_even_window(self):
        snapshot = make_snapshot([], [], START, END)
        assert split_window(snapshot) == date(2025, 1, 5)

    @pytest.mark.unit
    def test_odd_window(self):
        """A five day window has a two day first half"""
        snapshot = make_snapshot([], [], START, date(2025, 1, 5))
        assert split_window(snapshot) == date(2025, 1, 2)


class TestRankMovers:
    """rank_movers"""

    @pytest.mark.unit
    def test_growth(self, records):
        """Doubling is fast growth; 10% is not"""
        rows = [
            records.one(1, date(2025, 1, 2), 10),
            records.one(1, date(2025, 1, 8), 20),
            records.one(2, date(2025, 1, 3), 10),
            records.one(2, date(2025, 1, 9), 11),
        ]
        result = rank_movers(make_snapshot([make_item(1), make_item(2)], rows, START, END))

        assert [e.item_id for e in result.fastest_growing] == [1]
        assert result.fastest_growing[0].growth_percent == 100
        assert result.fastest_growing[0].first_half_quantity == 10
        assert result.fastest_growing[0].second_half_quantity == 20

    @pytest.mark.unit
    def test_new_item_has_no_growth(self, records):
        """Nothing in the first half means growth 0"""
        rows = [records.one(1, date(2025, 1, 9), 50)]
        result = rank_movers(make_snapshot([make_item(1)], rows, START, END))
        assert result.by_volume[0].growth_percent == 0
        assert result.fastest_growing == []

    @pytest.mark.unit
    def test_volume_and_cost_rankings(self, records):
        rows = [records.one(1, date(2025, 1, 2), 100), records.one(2, date(2025, 1, 2), 10)]
        items = [make_item(1, price=1.0), make_item(2, price=50.0)]

        result = rank_movers(make_snapshot(items, rows, START, END))

        assert [e.item_id for e in result.by_volume] == [1, 2]
        assert [e.item_id for e in result.by_cost] == [2, 1]
        assert result.by_cost[0].total_cost == 500

    @pytest.mark.unit
    def test_top_n(self, records):
        rows = [records.one(i, date(2025, 1, 2), i) for i in range(1, 6)]
        items = [make_item(i) for i in range(1, 6)]
        result = rank_movers(make_snapshot(items, rows, START, END), top_n=2)
        assert [e.item_id for e in result.by_volume] == [5, 4]

    @pytest.mark.unit
    def test_empty(self):
        result = rank_movers(make_snapshot([make_item(1)], [], START, END))
        assert result.by_volume == [] and result.fastest_growing == []
