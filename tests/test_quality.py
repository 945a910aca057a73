"""
Data quality checks
"""

from datetime import date

import pandas as pd
import pytest

from conftest import make_item, make_snapshot
from insights_core.quality import DataQualityChecker, assess_snapshot, completeness_score

DAY = date(2025, 1, 1)


class TestDataQualityChecker:
    """DataQualityChecker"""

    @pytest.mark.unit
    def test_missing_values(self):
        df = pd.DataFrame({"id": [1, 2, 3, 4], "name": ["a", None, None, "d"]})
        report = DataQualityChecker("items").run(df)

        [issue] = report.issues
        assert issue.column == "name"
        assert issue.count == 2
        assert issue.percentage == 50
        assert issue.severity == "critical"
        assert report.has_critical_issues

    @pytest.mark.unit
    def test_chained_checks(self):
        df = pd.DataFrame({"id": [1, 1, 2], "qty": [5, -1, 3], "code": ["A", "B", "bad!"]})
        report = (
            DataQualityChecker("items")
            .check_duplicates(["id"])
            .check_outliers("qty", min_val=0)
            .check_invalid_values("code", validator=str.isalnum)
            .run(df)
        )

        by_type = {i.issue_type: i for i in report.issues}
        assert by_type["duplicate"].count == 2
        assert by_type["outlier"].sample_values == [-1]
        assert by_type["invalid_format"].sample_values == ["bad!"]
        assert report.summary()["warnings"] == 3

    @pytest.mark.unit
    def test_checks_skip_missing_columns(self):
        report = DataQualityChecker("x").check_duplicates(["nope"]).check_outliers("nope", 0).run(
            pd.DataFrame({"id": [1]})
        )
        assert report.issues == []


class TestAssessSnapshot:
    """assess_snapshot / completeness_score"""

    @pytest.mark.unit
    def test_completeness_score(self):
        """0.8 x 40 + 0.5 x 60"""
        assert completeness_score(10, 2, 5) == 62
        assert completeness_score(0, 0, 0) == 100

    @pytest.mark.unit
    def test_issues(self, records):
        items = [
            make_item(1),
            make_item(2, price=None),
            make_item(3, price=0.0, category=None),
        ]
        rows = [records.one(1, DAY, 1), records.one(42, DAY, 1)]

        report = assess_snapshot(make_snapshot(items, rows, DAY, DAY))

        by_type = {i.issue_type: i for i in report.issues}
        assert by_type["missing_price"].sample_values == [2, 3]
        assert by_type["missing_price"].severity == "warning"
        assert by_type["missing_category"].severity == "info"
        assert by_type["unknown_item"].sample_values == [42]
        assert by_type["unknown_item"].count == 1
        assert report.items_without_price == 2
        assert report.items_without_category == 1
        assert report.total_records == 2

    @pytest.mark.unit
    def test_clean_snapshot(self):
        report = assess_snapshot(make_snapshot([make_item(1)], [], DAY, DAY))
        assert report.issues == []
        assert report.score == 100
