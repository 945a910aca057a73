"""
Shared test fixtures

- item / record builders
- snapshot and orchestrator helpers over in-memory sources
"""

import sys
from datetime import date, timedelta
from pathlib import Path

import pytest

# Add src to sys.path
SRC_ROOT = Path(__file__).parent.parent / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from data_sources import InMemoryItemSource, InMemoryRecordSource  # noqa: E402
from insights_core import InsightsOrchestrator  # noqa: E402
from insights_core.models import Category, ConsumptionRecord, Item, Snapshot  # noqa: E402

PRODUCE = Category(id=1, name="Produce")
DAIRY = Category(id=2, name="Dairy")


def make_item(item_id, price=1.0, quantity=0.0, category=PRODUCE, rate=None, **kwargs) -> Item:
    return Item(
        id=item_id,
        name=kwargs.pop("name", f"Item {item_id}"),
        category=category,
        unit_price=price,
        current_quantity=quantity,
        avg_daily_consumption=rate,
        **kwargs,
    )


class RecordFactory:
    """Builds consumption records with increasing ids."""

    def __init__(self):
        self._next_id = 1

    def one(self, item_id: int, day: date, quantity) -> ConsumptionRecord:
        record = ConsumptionRecord(
            id=self._next_id, item_id=item_id, consumption_date=day, consumed_quantity=quantity
        )
        self._next_id += 1
        return record

    def daily(self, item_id: int, start: date, quantities) -> list[ConsumptionRecord]:
        """One record per consecutive day starting at `start`."""
        return [
            self.one(item_id, start + timedelta(days=i), q) for i, q in enumerate(quantities)
        ]


def make_snapshot(items, records, start, end, category_id=None) -> Snapshot:
    return Snapshot(
        start=start, end=end, items=tuple(items), records=tuple(records), category_id=category_id
    )


def make_orchestrator(items, records, today=None) -> InsightsOrchestrator:
    return InsightsOrchestrator(
        InMemoryItemSource(items), InMemoryRecordSource(records, items), today=today
    )


@pytest.fixture
def records():
    return RecordFactory()
