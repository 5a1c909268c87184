"""
Table screening helpers: search, category filter, thermostat labels.
"""

from enum import IntEnum
from typing import List, Optional, Sequence, TypeVar, Union

from analysis.models import RankedRecord, SecurityRecord


ALL_CATEGORIES = 'all'

Row = TypeVar('Row', SecurityRecord, RankedRecord)


class Thermostat(IntEnum):
    """Market regime codes carried on security summaries."""
    BULLISH = 1
    NEUTRAL = 2
    BEARISH = 4


def thermostat_label(code: Optional[int]) -> str:
    try:
        return Thermostat(code).name.lower()
    except ValueError:
        return 'unknown'


def _record(row: Union[SecurityRecord, RankedRecord]) -> SecurityRecord:
    return row.record if isinstance(row, RankedRecord) else row


def filter_records(
    rows: Sequence[Row],
    search_term: str = '',
    category: str = ALL_CATEGORIES
) -> List[Row]:
    """
    Filter rows by symbol/name search and category, preserving order.

    Matching is case-insensitive: search_term is a substring of the symbol
    or name, and category is 'all' or equal to the record's category.
    """
    term = (search_term or '').strip().lower()
    wanted = (category or ALL_CATEGORIES).strip().lower()

    matches = []
    for row in rows:
        record = _record(row)

        if term and term not in record.symbol.lower() and term not in record.name.lower():
            continue

        if wanted != ALL_CATEGORIES and record.category.lower() != wanted:
            continue

        matches.append(row)

    return matches


def unique_categories(rows: Sequence[Union[SecurityRecord, RankedRecord]]) -> List[str]:
    """Return ['all'] followed by the sorted distinct non-empty categories."""
    categories = {_record(row).category for row in rows if _record(row).category}
    return [ALL_CATEGORIES] + sorted(categories)
