"""
Input entities and the per-call snapshot.

Items, categories and consumption records are owned by the surrounding
application. The engine only borrows an immutable snapshot of them for the
duration of one analysis call.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(BaseModel):
    """Grouping key for items."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class Item(BaseModel):
    """A stocked item as read from the item source."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    code: str | None = None
    category: Category | None = None
    current_quantity: float = Field(default=0.0, ge=0)
    unit_price: float | None = Field(default=None, ge=0)
    avg_daily_consumption: float | None = Field(
        default=None, description="Stored daily rate, used as the forecast input"
    )
    reorder_level: float | None = None
    stock_alert_level: str | None = None

    @field_validator("current_quantity", mode="before")
    @classmethod
    def _coalesce_quantity(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @property
    def forecast_daily_rate(self) -> float:
        """Stored daily rate; distinct from the rate observed in a window."""
        return float(self.avg_daily_consumption or 0.0)

    @property
    def price(self) -> float:
        return float(self.unit_price or 0.0)


class ConsumptionRecord(BaseModel):
    """One observed (item, date) quantity-used event."""

    model_config = ConfigDict(frozen=True)

    id: int
    item_id: int
    consumption_date: date
    consumed_quantity: float = Field(default=0.0, ge=0)
    opening_stock: float | None = None
    received_quantity: float | None = None
    closing_stock: float | None = None

    @field_validator("consumed_quantity", mode="before")
    @classmethod
    def _coalesce_quantity(cls, value: Any) -> Any:
        return 0.0 if value is None else value


ITEM_COLUMNS = [
    "item_id",
    "item_name",
    "category_id",
    "category_name",
    "current_quantity",
    "unit_price",
    "forecast_daily_rate",
    "reorder_level",
    "stock_alert_level",
]

RECORD_COLUMNS = [
    "record_id",
    "item_id",
    "item_name",
    "category_id",
    "category_name",
    "consumption_date",
    "consumed_quantity",
    "unit_price",
    "cost",
]


def items_to_frame(items: list[Item] | tuple[Item, ...]) -> pd.DataFrame:
    """Flatten items into one row per item."""
    rows = [
        {
            "item_id": item.id,
            "item_name": item.name,
            "category_id": item.category.id if item.category else None,
            "category_name": item.category.name if item.category else None,
            "current_quantity": float(item.current_quantity),
            "unit_price": item.price,
            "forecast_daily_rate": item.forecast_daily_rate,
            "reorder_level": item.reorder_level,
            "stock_alert_level": item.stock_alert_level,
        }
        for item in items
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def records_to_frame(
    records: list[ConsumptionRecord] | tuple[ConsumptionRecord, ...],
    items: list[Item] | tuple[Item, ...],
) -> pd.DataFrame:
    """
    Flatten records and join them with their item's price and category.

    Records pointing at an unknown item keep a zero price, so they add
    quantity but no cost.
    """
    by_id = {item.id: item for item in items}
    rows = []
    for record in records:
        item = by_id.get(record.item_id)
        price = item.price if item else 0.0
        quantity = float(record.consumed_quantity or 0.0)
        rows.append(
            {
                "record_id": record.id,
                "item_id": record.item_id,
                "item_name": item.name if item else f"Item {record.item_id}",
                "category_id": item.category.id if item and item.category else None,
                "category_name": item.category.name if item and item.category else None,
                "consumption_date": pd.Timestamp(record.consumption_date),
                "consumed_quantity": quantity,
                "unit_price": price,
                "cost": quantity * price,
            }
        )
    frame = pd.DataFrame(rows, columns=RECORD_COLUMNS)
    frame["consumption_date"] = pd.to_datetime(frame["consumption_date"])
    frame["consumed_quantity"] = frame["consumed_quantity"].astype(float)
    frame["cost"] = frame["cost"].astype(float)
    return frame


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable, call-scoped copy of the items and records for one analysis.

    Every analyzer receives the same snapshot by reference. The frames are
    built once; analyzers filter them into new frames and never write back.
    """

    start: date
    end: date
    items: tuple[Item, ...]
    records: tuple[ConsumptionRecord, ...]
    category_id: int | None = None
    items_frame: pd.DataFrame = field(init=False, repr=False, compare=False)
    records_frame: pd.DataFrame = field(init=False, repr=False, compare=False)
    window_frame: pd.DataFrame = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # Frozen dataclass: derived fields are set through object.__setattr__
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "records", tuple(self.records))
        object.__setattr__(self, "items_frame", items_to_frame(self.items))
        object.__setattr__(
            self, "records_frame", records_to_frame(self.records, self.items)
        )
        # Records may extend past the window (e.g. a full month for bin variance)
        frame = self.records_frame
        in_window = (frame["consumption_date"] >= pd.Timestamp(self.start)) & (
            frame["consumption_date"] <= pd.Timestamp(self.end)
        )
        object.__setattr__(self, "window_frame", frame[in_window])

    @property
    def days_in_window(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def is_empty(self) -> bool:
        return len(self.window_frame) == 0

    def item(self, item_id: int) -> Item | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None
