"""
Anomaly detection
"""

from datetime import date, timedelta

import pytest

from conftest import make_item, make_snapshot
from insights_core.anomalies import anomaly_confidence, detect_anomalies

START = date(2025, 1, 1)


def _snapshot(items, rows, days=60):
    return make_snapshot(items, rows, START, START + timedelta(days=days - 1))


class TestDetectAnomalies:
    """detect_anomalies"""

    @pytest.mark.unit
    def test_identical_values_have_no_outliers(self, records):
        """Zero stddev never flags anything"""
        rows = records.daily(1, START, [10] * 20)
        result = detect_anomalies(_snapshot([make_item(1)], rows), min_confidence=0.0)
        assert result == []

    @pytest.mark.unit
    def test_single_spike(self, records):
        """Nine 10s and one 100 flags exactly the 100"""
        rows = records.daily(1, START, [10] * 9 + [100])
        result = detect_anomalies(_snapshot([make_item(1)], rows))

        assert len(result) == 1
        anomaly = result[0]
        assert anomaly.outlier_count == 1
        assert anomaly.outliers[0].value == 100
        assert anomaly.outliers[0].consumption_date == START + timedelta(days=9)
        assert anomaly.outliers[0].deviation == 81
        assert anomaly.outliers[0].z_score == 3
        assert anomaly.mean == 19
        assert anomaly.stddev == 27
        assert anomaly.confidence == 0.7

    @pytest.mark.unit
    def test_fewer_than_ten_values_skipped(self, records):
        """Items with nine values are not analyzed"""
        rows = records.daily(1, START, [10] * 8 + [100])
        assert detect_anomalies(_snapshot([make_item(1)], rows), min_confidence=0.0) == []

    @pytest.mark.unit
    def test_min_confidence_filters(self, records):
        """An item below the threshold is not reported"""
        rows = records.daily(1, START, [10] * 9 + [100])
        assert detect_anomalies(_snapshot([make_item(1)], rows), min_confidence=0.8) == []

    @pytest.mark.unit
    def test_same_day_records_are_summed(self, records):
        """Two records on one day count as one daily value"""
        rows = records.daily(1, START, [10] * 9)
        rows += [records.one(1, START + timedelta(days=9), 5), records.one(1, START + timedelta(days=9), 5)]
        assert detect_anomalies(_snapshot([make_item(1)], rows), min_confidence=0.0) == []

    @pytest.mark.unit
    def test_ranked_by_confidence(self, records):
        """Higher confidence first"""
        rows = records.daily(1, START, [10] * 9 + [100])
        rows += records.daily(2, START, [10] * 13 + [200, 200])
        result = detect_anomalies(_snapshot([make_item(1), make_item(2)], rows))

        assert [r.item_id for r in result] == [2, 1]
        assert result[0].outlier_count == 2
        assert result[0].confidence == pytest.approx(0.7333)

    @pytest.mark.unit
    def test_max_items(self, records):
        rows = records.daily(1, START, [10] * 9 + [100])
        rows += records.daily(2, START, [10] * 9 + [100])
        result = detect_anomalies(_snapshot([make_item(1), make_item(2)], rows), max_items=1)
        assert len(result) == 1

    @pytest.mark.unit
    def test_records_outside_window_ignored(self, records):
        """Only in-window values are considered"""
        rows = records.daily(1, START, [10] * 9 + [100])
        snapshot = make_snapshot([make_item(1)], rows, START, START + timedelta(days=8))
        assert detect_anomalies(snapshot, min_confidence=0.0) == []

    @pytest.mark.unit
    def test_empty(self):
        assert detect_anomalies(_snapshot([make_item(1)], [])) == []


class TestConfidence:
    """anomaly_confidence"""

    @pytest.mark.unit
    def test_base_plus_share(self):
        assert anomaly_confidence(1, 10) == 0.7

    @pytest.mark.unit
    def test_capped(self):
        """Never above 0.99"""
        assert anomaly_confidence(10, 10) == 0.99

    @pytest.mark.unit
    def test_no_records(self):
        assert anomaly_confidence(0, 0) == 0.6
