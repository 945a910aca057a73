"""
Read-only data sources the engine consumes.

Any object with these methods works; see data_sources for in-memory and
CSV-backed implementations.
"""

from datetime import date
from typing import Protocol

from .models import ConsumptionRecord, Item


class ItemSource(Protocol):
    def list_items(self, category_id: int | None = None) -> list[Item]:
        """All items, or the items of one category."""
        ...


class ConsumptionRecordSource(Protocol):
    def list_records(
        self,
        start: date | None = None,
        end: date | None = None,
        item_id: int | None = None,
        category_id: int | None = None,
    ) -> list[ConsumptionRecord]:
        """Records matching every given filter; dates are inclusive."""
        ...

    def min_consumption_date(self, category_id: int | None = None) -> date | None:
        ...

    def max_consumption_date(self, category_id: int | None = None) -> date | None:
        ...
