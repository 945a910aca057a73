"""
In-memory item and consumption record sources.

Hold plain lists of models and answer the read-only queries the engine
makes. Used by the CSV loader and directly in tests.
"""

from datetime import date

from insights_core.models import ConsumptionRecord, Item


class InMemoryItemSource:
    def __init__(self, items: list[Item]):
        self._items = list(items)

    def list_items(self, category_id: int | None = None) -> list[Item]:
        if category_id is None:
            return list(self._items)
        return [i for i in self._items if i.category and i.category.id == category_id]


class InMemoryRecordSource:
    """
    Consumption records held in memory.

    Category filters resolve through the item list, since records only
    reference their item.
    """

    def __init__(self, records: list[ConsumptionRecord], items: list[Item] | None = None):
        self._records = sorted(records, key=lambda r: (r.consumption_date, r.id))
        self._category_by_item = {
            i.id: i.category.id for i in (items or []) if i.category is not None
        }

    def _matches(self, record, start, end, item_id, category_id) -> bool:
        if start is not None and record.consumption_date < start:
            return False
        if end is not None and record.consumption_date > end:
            return False
        if item_id is not None and record.item_id != item_id:
            return False
        if category_id is not None and self._category_by_item.get(record.item_id) != category_id:
            return False
        return True

    def list_records(
        self,
        start: date | None = None,
        end: date | None = None,
        item_id: int | None = None,
        category_id: int | None = None,
    ) -> list[ConsumptionRecord]:
        return [r for r in self._records if self._matches(r, start, end, item_id, category_id)]

    def _dates(self, category_id: int | None) -> list[date]:
        return [r.consumption_date for r in self.list_records(category_id=category_id)]

    def min_consumption_date(self, category_id: int | None = None) -> date | None:
        dates = self._dates(category_id)
        return min(dates) if dates else None

    def max_consumption_date(self, category_id: int | None = None) -> date | None:
        dates = self._dates(category_id)
        return max(dates) if dates else None
