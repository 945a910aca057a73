"""
Parsers for exported inventory data.

Handles the usual mess in spreadsheet exports:
- Several date formats in one column
- Item codes with inconsistent prefixes and leading zeros
- Quantities written with thousands separators or units
"""

import re
from datetime import date, datetime

import pandas as pd


class DateParser:
    """
    Date parser that tries several common export formats.

    To extend: pass custom formats, which are tried before the defaults.
    """

    # Ordered by specificity
    DATE_FORMATS = [
        "%Y-%m-%d",      # ISO: 2025-01-31
        "%d/%m/%Y",      # 31/01/2025
        "%d-%m-%Y",      # 31-01-2025
        "%d.%m.%Y",      # 31.01.2025
        "%m/%d/%Y",      # US: 01/31/2025
        "%Y/%m/%d",      # 2025/01/31
        "%d-%b-%Y",      # 31-Jan-2025
        "%d %b %Y",      # 31 Jan 2025
    ]

    def __init__(self, custom_formats: list[str] | None = None):
        self.formats = (custom_formats or []) + self.DATE_FORMATS
        self._cache: dict[str, date | None] = {}

    def parse(self, value) -> date | None:
        """Parse a date value; returns None when no format matches."""
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        text = str(value).strip()
        if not text:
            return None
        if text in self._cache:
            return self._cache[text]

        # Timestamps exported as "2025-01-31 00:00:00"
        candidate = text.split(" ")[0] if re.match(r"^\d{4}-\d{2}-\d{2} ", text) else text
        for fmt in self.formats:
            try:
                result = datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
            self._cache[text] = result
            return result

        self._cache[text] = None
        return None

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of dates."""
        return series.apply(self.parse)


class ItemCodeNormalizer:
    """
    Normalizes item codes so records can be matched to items by code.

    - ITEM-00123 -> 123
    - itm123 -> 123
    - 00123 -> 123
    - 123A -> 123A
    """

    DEFAULT_PREFIXES = ["ITEM-", "ITEM", "ITM-", "ITM", "SKU-", "SKU"]

    def __init__(self, strip_prefixes: list[str] | None = None, strip_leading_zeros: bool = True):
        # Longer prefixes first
        self.prefixes = sorted(strip_prefixes or self.DEFAULT_PREFIXES, key=len, reverse=True)
        self.strip_leading_zeros = strip_leading_zeros

    def normalize(self, code) -> str | None:
        if code is None or (not isinstance(code, str) and pd.isna(code)):
            return None
        result = str(code).strip().upper()
        if not result:
            return None
        if result.endswith(".0") and result[:-2].isdigit():
            result = result[:-2]

        for prefix in self.prefixes:
            if result.startswith(prefix.upper()):
                result = result[len(prefix):]
                break

        if self.strip_leading_zeros and result.isdigit():
            result = result.lstrip("0") or "0"
        return result

    def normalize_series(self, series: pd.Series) -> pd.Series:
        return series.apply(self.normalize)


_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def parse_quantity(value) -> float | None:
    """
    Parse a numeric cell such as '1,250', '12 kg' or 3.5.

    Returns None for blanks and text without a number.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return None if pd.isna(value) else float(value)
    text = str(value).replace(",", "").strip()
    match = _NUMBER.search(text)
    return float(match.group(0)) if match else None
