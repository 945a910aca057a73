"""
Seasonality detection
"""

from datetime import date

import pytest

from conftest import make_item, make_snapshot
from insights_core.results import SectionStatus
from insights_core.seasonality import detect_seasonality


def _monthly(records, year, quantities, start_month=1):
    return [
        records.one(1, date(year, start_month + i, 10), q) for i, q in enumerate(quantities)
    ]


class TestDetectSeasonality:
    """detect_seasonality"""

    @pytest.mark.unit
    def test_seasonal_peak(self, records):
        """A June spike over five flat months is seasonal"""
        rows = _monthly(records, 2025, [100, 100, 100, 100, 100, 250])
        snapshot = make_snapshot([make_item(1)], rows, date(2025, 1, 1), date(2025, 6, 30))

        result = detect_seasonality(snapshot)

        assert result.status == SectionStatus.OK
        assert result.distinct_months == 6
        assert result.peak_month == "Jun"
        assert result.trough_month == "Jan"
        assert result.variance == 150
        assert result.variance_percent == 120
        assert result.is_seasonal is True

    @pytest.mark.unit
    def test_flat_not_seasonal(self, records):
        rows = _monthly(records, 2025, [100, 110, 100, 110, 100, 110])
        snapshot = make_snapshot([make_item(1)], rows, date(2025, 1, 1), date(2025, 6, 30))

        result = detect_seasonality(snapshot)

        assert result.variance_percent == 9.52
        assert result.is_seasonal is False

    @pytest.mark.unit
    def test_needs_six_months(self, records):
        """Five months is insufficient"""
        rows = _monthly(records, 2025, [100, 100, 100, 100, 500])
        snapshot = make_snapshot([make_item(1)], rows, date(2025, 1, 1), date(2025, 6, 30))

        result = detect_seasonality(snapshot)

        assert result.status == SectionStatus.INSUFFICIENT_SAMPLE
        assert result.distinct_months == 5
        assert result.is_seasonal is False

    @pytest.mark.unit
    def test_years_collapse(self, records):
        """The same month of different years is combined"""
        rows = [records.one(1, date(2024, 1, 10), 50)]
        rows += _monthly(records, 2025, [50, 100, 100, 100, 100, 100])
        snapshot = make_snapshot([make_item(1)], rows, date(2024, 1, 1), date(2025, 6, 30))

        result = detect_seasonality(snapshot)

        assert result.distinct_months == 7
        assert result.years_covered == 2
        assert result.monthly_costs["Jan"] == 100
        assert len(result.monthly_costs) == 6
        assert result.is_seasonal is False

    @pytest.mark.unit
    def test_empty(self):
        snapshot = make_snapshot([make_item(1)], [], date(2025, 1, 1), date(2025, 6, 30))
        assert detect_seasonality(snapshot).status == SectionStatus.EMPTY_DATASET
