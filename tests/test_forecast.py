"""
Forecast accuracy scoring
"""

from datetime import date

import pytest

from conftest import make_item, make_snapshot
from insights_core.forecast import forecast_accuracy, rate_accuracy

START, END = date(2025, 1, 1), date(2025, 1, 10)


class TestForecastAccuracy:
    """forecast_accuracy"""

    @pytest.mark.unit
    def test_exact_forecast(self, records):
        """forecast=1000, actual=1000 gives 100, EXCELLENT"""
        rows = records.daily(1, START, [100] * 10)
        snapshot = make_snapshot([make_item(1, rate=100)], rows, START, END)

        result = forecast_accuracy(snapshot)

        assert result.total_forecast == 1000
        assert result.total_actual == 1000
        assert result.accuracy == 100
        assert result.rating == "EXCELLENT"

    @pytest.mark.unit
    def test_zero_forecast_items_excluded(self, records):
        """Items without a forecast are left out of both totals"""
        rows = records.daily(1, START, [100] * 10) + records.daily(2, START, [50] * 10)
        items = [make_item(1, rate=100), make_item(2, rate=0), make_item(3, rate=None)]

        result = forecast_accuracy(make_snapshot(items, rows, START, END))

        assert result.items_evaluated == 1
        assert result.total_actual == 1000
        assert result.accuracy == 100

    @pytest.mark.unit
    def test_under_consumption(self, records):
        """900 against 1000 is 90%"""
        rows = records.daily(1, START, [90] * 10)
        result = forecast_accuracy(make_snapshot([make_item(1, rate=100)], rows, START, END))
        assert result.accuracy == 90
        assert result.rating == "EXCELLENT"
        assert result.largest_misses[0].error == -100

    @pytest.mark.unit
    def test_not_clamped(self, records):
        """Misses larger than the forecast go below zero"""
        rows = records.daily(1, START, [35] * 10)
        result = forecast_accuracy(make_snapshot([make_item(1, rate=10)], rows, START, END))
        assert result.accuracy == -150
        assert result.rating == "NEEDS_IMPROVEMENT"

    @pytest.mark.unit
    def test_no_forecasts(self, records):
        """No positive forecasts gives NO_FORECAST"""
        rows = records.daily(1, START, [10] * 10)
        result = forecast_accuracy(make_snapshot([make_item(1)], rows, START, END))
        assert result.items_evaluated == 0
        assert result.rating == "NO_FORECAST"
        assert result.days_in_window == 10

    @pytest.mark.unit
    def test_item_without_records(self):
        """A forecast with no consumption counts as a full miss"""
        result = forecast_accuracy(make_snapshot([make_item(1, rate=5)], [], START, END))
        assert result.total_forecast == 50
        assert result.total_actual == 0
        assert result.accuracy == 0


class TestRating:
    """rate_accuracy bands"""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "accuracy,rating",
        [
            (100, "EXCELLENT"),
            (90, "EXCELLENT"),
            (89.99, "GOOD"),
            (80, "GOOD"),
            (70, "FAIR"),
            (69.99, "NEEDS_IMPROVEMENT"),
            (-20, "NEEDS_IMPROVEMENT"),
        ],
    )
    def test_bands(self, accuracy, rating):
        assert rate_accuracy(accuracy) == rating
