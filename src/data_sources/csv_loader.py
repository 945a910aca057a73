"""
Loader for CSV exports of the inventory backend.

Expects a directory with:
- categories.csv: id, name
- items.csv: id, name, code, category_id, current_quantity, unit_price,
  avg_daily_consumption, reorder_level, stock_alert_level
- consumption.csv: id, item_id (or item_code), consumption_date,
  consumed_quantity, opening_stock, received_quantity, closing_stock

Column names are matched case-insensitively with spaces turned into
underscores. Rows that cannot become valid models (unparseable date,
negative quantity, unknown item code) are skipped and reported.
"""

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from insights_core.log import get_logger
from insights_core.models import Category, ConsumptionRecord, Item
from insights_core.quality import DataQualityChecker
from insights_core.results import DataQualityIssue, DataQualityReport

from .memory import InMemoryItemSource, InMemoryRecordSource
from .parsers import DateParser, ItemCodeNormalizer, parse_quantity

logger = get_logger(__name__)

NUMERIC_ITEM_COLUMNS = ["current_quantity", "unit_price", "avg_daily_consumption", "reorder_level"]
NUMERIC_RECORD_COLUMNS = [
    "consumed_quantity",
    "opening_stock",
    "received_quantity",
    "closing_stock",
]

# Alternative headers seen in exports
COLUMN_ALIASES = {
    "item_name": "name",
    "category_name": "name",
    "date": "consumption_date",
    "quantity": "consumed_quantity",
    "consumed": "consumed_quantity",
    "price": "unit_price",
}


def _clean(value):
    return None if value is None or (not isinstance(value, str) and pd.isna(value)) else value


@dataclass
class LoadedData:
    """Container for the loaded models and their quality reports."""

    categories: list[Category]
    items: list[Item]
    records: list[ConsumptionRecord]
    quality_reports: dict[str, DataQualityReport] = field(default_factory=dict)

    def sources(self) -> tuple[InMemoryItemSource, InMemoryRecordSource]:
        """Item and record sources over the loaded data."""
        return InMemoryItemSource(self.items), InMemoryRecordSource(self.records, self.items)


class CsvExportLoader:
    """
    Loads items, categories and consumption records from CSV exports.

    Handles:
    - Several date formats in the consumption date column
    - Records keyed by item code instead of item id
    - Numbers written with thousands separators or units
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir)
        self.date_parser = DateParser()
        self.code_normalizer = ItemCodeNormalizer()

    def _read(self, name: str) -> pd.DataFrame:
        path = self.data_dir / name
        if not path.exists():
            logger.warning("%s not found in %s", name, self.data_dir)
            return pd.DataFrame()
        df = pd.read_csv(path)
        df.columns = [c.strip().lower().replace(" ", "_") for c in df.columns]
        for alias, column in COLUMN_ALIASES.items():
            if alias in df.columns and column not in df.columns:
                df = df.rename(columns={alias: column})
        return df

    def load_all(self) -> LoadedData:
        """Load every file and run quality checks on each."""
        categories_df = self._read("categories.csv")
        items_df = self._read("items.csv")
        records_df = self._read("consumption.csv")

        categories = self.load_categories(categories_df)
        items = self.load_items(items_df, categories)
        records, skipped = self.load_records(records_df, items)

        quality_reports = {
            "items": self._check_items_quality(items_df),
            "consumption": self._check_records_quality(records_df, skipped),
        }
        logger.info(
            "Loaded %d categories, %d items, %d records (%d rows skipped)",
            len(categories),
            len(items),
            len(records),
            len(skipped),
        )
        return LoadedData(categories, items, records, quality_reports)

    def load_categories(self, df: pd.DataFrame) -> list[Category]:
        if df.empty:
            return []
        return [
            Category(id=int(row["id"]), name=str(row["name"]).strip())
            for _, row in df.dropna(subset=["id", "name"]).iterrows()
        ]

    def load_items(self, df: pd.DataFrame, categories: list[Category]) -> list[Item]:
        if df.empty:
            return []
        by_id = {c.id: c for c in categories}
        items = []
        for _, row in df.iterrows():
            category_id = parse_quantity(_clean(row.get("category_id")))
            values = {col: parse_quantity(_clean(row.get(col))) for col in NUMERIC_ITEM_COLUMNS}
            try:
                items.append(
                    Item(
                        id=int(row["id"]),
                        name=str(row["name"]).strip(),
                        code=self.code_normalizer.normalize(_clean(row.get("code"))),
                        category=by_id.get(int(category_id)) if category_id is not None else None,
                        stock_alert_level=_clean(row.get("stock_alert_level")),
                        **values,
                    )
                )
            except (ValidationError, ValueError, KeyError) as exc:
                logger.warning("Skipping item row %s: %s", row.get("id"), exc)
        return items

    def load_records(
        self, df: pd.DataFrame, items: list[Item]
    ) -> tuple[list[ConsumptionRecord], list[dict]]:
        """
        Build records, returning them with the rows that were skipped.

        Each skipped row is reported as {"row": index, "reason": text}.
        """
        if df.empty:
            return [], []
        by_code = {item.code: item.id for item in items if item.code}

        records, skipped = [], []
        for index, row in df.iterrows():
            item_id = parse_quantity(_clean(row.get("item_id")))
            if item_id is None:
                item_id = by_code.get(self.code_normalizer.normalize(_clean(row.get("item_code"))))
            consumption_date = self.date_parser.parse(row.get("consumption_date"))
            if item_id is None or consumption_date is None:
                skipped.append({"row": int(index), "reason": "missing item or date"})
                continue

            values = {col: parse_quantity(_clean(row.get(col))) for col in NUMERIC_RECORD_COLUMNS}
            record_id = parse_quantity(_clean(row.get("id")))
            try:
                records.append(
                    ConsumptionRecord(
                        id=int(record_id) if record_id is not None else int(index) + 1,
                        item_id=int(item_id),
                        consumption_date=consumption_date,
                        **values,
                    )
                )
            except ValidationError as exc:
                skipped.append({"row": int(index), "reason": str(exc.errors()[0]["msg"])})
        return records, skipped

    def _check_items_quality(self, df: pd.DataFrame) -> DataQualityReport:
        checker = DataQualityChecker("Items")
        checker.check_duplicates(["id"], severity="critical")
        checker.check_outliers("current_quantity", min_val=0, severity="warning")
        checker.check_outliers("unit_price", min_val=0, severity="warning")
        return checker.run(df)

    def _check_records_quality(self, df: pd.DataFrame, skipped: list[dict]) -> DataQualityReport:
        checker = DataQualityChecker("Consumption")
        checker.check_invalid_values(
            "consumption_date",
            validator=lambda v: self.date_parser.parse(v) is not None,
        )
        checker.check_outliers("consumed_quantity", min_val=0, severity="warning")
        # Same item and date twice is legitimate; they are summed
        checker.check_duplicates(["item_id", "consumption_date"], severity="info")

        def check_skipped(d: pd.DataFrame) -> list[DataQualityIssue]:
            if not skipped:
                return []
            return [
                DataQualityIssue(
                    column="*",
                    issue_type="skipped_row",
                    severity="warning",
                    count=len(skipped),
                    percentage=round(len(skipped) * 100 / len(d), 2) if len(d) else 0.0,
                    sample_values=[s["row"] for s in skipped[:5]],
                    description=f"{len(skipped)} rows could not be loaded",
                )
            ]

        checker.add_check(check_skipped)
        return checker.run(df)
