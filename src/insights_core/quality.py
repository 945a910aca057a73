"""
Data quality checks.

Two uses:
- DataQualityChecker runs column checks over a raw source frame (missing
  values, duplicates, invalid or out-of-range values) before it is turned
  into items and records.
- assess_snapshot scores how complete an analysis snapshot is. Missing
  prices and categories never stop an analysis; they are reported here.
"""

from typing import Any, Callable

import pandas as pd

from .aggregation import safe_divide
from .config import PERCENT_SCALE, QUALITY_CATEGORY_WEIGHT, QUALITY_PRICE_WEIGHT
from .log import get_logger
from .models import Snapshot
from .results import DataQualityIssue, DataQualityReport

logger = get_logger(__name__)

MAX_SAMPLES = 5


def _severity(pct: float) -> str:
    return "critical" if pct > 20 else "warning" if pct > 5 else "info"


class DataQualityChecker:
    """
    Column-level quality checker for a source frame.

    Missing values are always checked. Add more checks by chaining:

        report = (
            DataQualityChecker("consumption.csv")
            .check_duplicates(["item_id", "consumption_date"], severity="info")
            .check_outliers("consumed_quantity", min_val=0)
            .run(frame)
        )
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[Callable[[pd.DataFrame], list[DataQualityIssue]]] = []
        self.add_check(self._check_missing_values)

    def add_check(
        self, check_fn: Callable[[pd.DataFrame], list[DataQualityIssue]]
    ) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def _check_missing_values(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        issues = []
        for col in df.columns:
            missing = int(df[col].isna().sum())
            if missing > 0:
                pct = safe_divide(missing * 100, len(df), PERCENT_SCALE)
                issues.append(
                    DataQualityIssue(
                        column=col,
                        issue_type="missing",
                        severity=_severity(pct),
                        count=missing,
                        percentage=pct,
                        description=f"{missing:,} missing values ({pct:.1f}%)",
                    )
                )
        return issues

    def check_duplicates(
        self, key_columns: list[str], severity: str = "warning"
    ) -> "DataQualityChecker":
        """Flag rows sharing the same key columns."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if not set(key_columns) <= set(df.columns):
                return []
            dupes = int(df.duplicated(subset=key_columns, keep=False).sum())
            if dupes == 0:
                return []
            return [
                DataQualityIssue(
                    column=", ".join(key_columns),
                    issue_type="duplicate",
                    severity=severity,
                    count=dupes,
                    percentage=safe_divide(dupes * 100, len(df), PERCENT_SCALE),
                    description=f"{dupes:,} rows share key columns",
                )
            ]

        return self.add_check(check)

    def check_invalid_values(
        self,
        column: str,
        validator: Callable[[Any], bool],
        severity: str = "warning",
    ) -> "DataQualityChecker":
        """Flag non-null values the validator rejects."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            values = df[column].dropna()
            invalid_mask = values.apply(lambda x: not validator(x))
            invalid = int(invalid_mask.sum())
            if invalid == 0:
                return []
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="invalid_format",
                    severity=severity,
                    count=invalid,
                    percentage=safe_divide(invalid * 100, len(df), PERCENT_SCALE),
                    sample_values=values[invalid_mask].head(MAX_SAMPLES).tolist(),
                    description=f"{invalid:,} invalid values",
                )
            ]

        return self.add_check(check)

    def check_outliers(
        self,
        column: str,
        min_val: float | None = None,
        max_val: float | None = None,
        severity: str = "warning",
    ) -> "DataQualityChecker":
        """Flag numeric values outside [min_val, max_val]."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            values = pd.to_numeric(df[column], errors="coerce")
            outlier_mask = pd.Series(False, index=df.index)
            if min_val is not None:
                outlier_mask |= values < min_val
            if max_val is not None:
                outlier_mask |= values > max_val
            outliers = int(outlier_mask.sum())
            if outliers == 0:
                return []
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="outlier",
                    severity=severity,
                    count=outliers,
                    percentage=safe_divide(outliers * 100, len(df), PERCENT_SCALE),
                    sample_values=df.loc[outlier_mask, column].head(MAX_SAMPLES).tolist(),
                    description=f"{outliers:,} values outside expected range",
                )
            ]

        return self.add_check(check)

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        """Run all checks and return a quality report."""
        issues = []
        for check_fn in self._checks:
            issues.extend(check_fn(df))
        report = DataQualityReport(
            source_name=self.source_name, total_rows=len(df), issues=issues
        )
        if report.has_critical_issues:
            logger.warning(
                "%s: %d critical quality issues", self.source_name, len(report.critical_issues)
            )
        return report


def completeness_score(total_items: int, without_category: int, without_price: int) -> int:
    """Weighted share of items with a category and a price, 0-100."""
    if total_items == 0:
        return 100
    category_completeness = (total_items - without_category) / total_items
    price_completeness = (total_items - without_price) / total_items
    weighted = (
        category_completeness * QUALITY_CATEGORY_WEIGHT
        + price_completeness * QUALITY_PRICE_WEIGHT
    ) * 100
    return int(safe_divide(weighted, 1, 0))


def _issue(column, issue_type, severity, ids, total, description) -> DataQualityIssue:
    return DataQualityIssue(
        column=column,
        issue_type=issue_type,
        severity=severity,
        count=len(ids),
        percentage=safe_divide(len(ids) * 100, total, PERCENT_SCALE),
        sample_values=ids[:MAX_SAMPLES],
        description=description,
    )


def assess_snapshot(snapshot: Snapshot) -> DataQualityReport:
    """
    Completeness of the snapshot's items and records.

    Items without a price (missing or zero) contribute no cost anywhere;
    records pointing at unknown items contribute quantity but no cost.
    """
    no_price = [i.id for i in snapshot.items if not i.unit_price]
    no_category = [i.id for i in snapshot.items if i.category is None]
    known = {i.id for i in snapshot.items}
    unknown = sorted({r.item_id for r in snapshot.records if r.item_id not in known})
    total_items = len(snapshot.items)
    total_records = len(snapshot.records)

    issues = []
    if no_price:
        issues.append(
            _issue(
                "unit_price", "missing_price", "warning", no_price, total_items,
                f"{len(no_price)} items have no unit price; their cost counts as zero",
            )
        )
    if no_category:
        issues.append(
            _issue(
                "category", "missing_category", "info", no_category, total_items,
                f"{len(no_category)} items have no category",
            )
        )
    if unknown:
        orphan_records = sum(1 for r in snapshot.records if r.item_id not in known)
        issues.append(
            DataQualityIssue(
                column="item_id",
                issue_type="unknown_item",
                severity="warning",
                count=orphan_records,
                percentage=safe_divide(orphan_records * 100, total_records, PERCENT_SCALE),
                sample_values=unknown[:MAX_SAMPLES],
                description=f"{orphan_records} records reference items not in the snapshot",
            )
        )

    score = completeness_score(total_items, len(no_category), len(no_price))
    logger.info("Snapshot quality score %d with %d issues", score, len(issues))
    return DataQualityReport(
        source_name="snapshot",
        total_rows=total_items + total_records,
        issues=issues,
        total_items=total_items,
        total_records=total_records,
        items_without_price=len(no_price),
        items_without_category=len(no_category),
        score=score,
    )
