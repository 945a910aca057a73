# Read-only item and consumption record sources for the analytics engine
# In-memory lists, and a loader for CSV exports of the inventory backend

from .csv_loader import CsvExportLoader, LoadedData
from .memory import InMemoryItemSource, InMemoryRecordSource
from .parsers import DateParser, ItemCodeNormalizer, parse_quantity

__all__ = [
    "CsvExportLoader",
    "LoadedData",
    "InMemoryItemSource",
    "InMemoryRecordSource",
    "DateParser",
    "ItemCodeNormalizer",
    "parse_quantity",
]
