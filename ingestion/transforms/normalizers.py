"""
Normalizers for transforming dashboard CSV rows to canonical shape.
Pure functions - no IO, network, or side effects.
Minimal normalization - only when necessary.
"""

import math
import pandas as pd
from datetime import date, datetime
from typing import Dict, Any, List, Optional

from ingestion.transforms.validators import ValidationError


# Dashboard summary headers -> canonical keys (category column varies by list)
SUMMARY_FIELD_MAP = {
    'Symbol': 'symbol',
    'Name': 'name',
    'Close': 'close_price',
    'Volume': 'volume',
    'CVI': 'cvi',
    'SecState': 'sec_state',
    'Thermostat': 'thermostat',
    'VWRS': 'score',
    'VWRS_1wk': 'prior_score',
}

INTEGER_FIELDS = {'volume', 'sec_state', 'thermostat'}
FLOAT_FIELDS = {'close_price', 'cvi', 'score', 'prior_score'}


def to_float(value: Any) -> Optional[float]:
    """Coerce a cell to float; blank, non-numeric or NaN cells become None."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if math.isnan(number):
        return None

    return number


def to_int(value: Any) -> Optional[int]:
    """Coerce a cell to int; fractional values are truncated like the source feed."""
    number = to_float(value)
    if number is None or not math.isfinite(number):
        return None
    return int(number)


def to_date(value: Any) -> Optional[date]:
    """
    Parse date strings and datetime-likes to a date.

    ISO strings are read directly; other layouts (e.g. "06/30/2025") go
    through pandas. Blank cells are None.

    Raises:
        ValidationError: If a non-blank cell is not a recognizable date
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    # pandas.Timestamp and similar
    if hasattr(value, 'to_pydatetime'):
        return value.to_pydatetime().date()

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None

        try:
            # "YYYY-MM-DD" and "YYYY-MM-DD HH:MM:SS"
            return date.fromisoformat(text[:10])
        except ValueError:
            pass

        try:
            parsed = pd.to_datetime(text)
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Invalid date: {value!r}") from e

        if pd.isna(parsed):
            raise ValidationError(f"Invalid date: {value!r}")
        return parsed.date()

    raise ValidationError(f"Invalid date: {value!r}")


def _clean_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, float) and math.isnan(value):
        return ''
    return str(value).strip()


def normalize_summary_rows(
    raw_rows: List[Dict[str, Any]],
    *,
    category_field: str = 'Sector'
) -> List[Dict[str, Any]]:
    """
    Transform dashboard summary rows to canonical shape.

    Minimal normalization:
    - Header trimming and field name mapping
    - Numeric coercion (unparseable cells become None, never NaN)
    - Deduplication by symbol (keep last)

    Args:
        raw_rows: Rows keyed by the summary CSV headers
        category_field: Header holding the category ('Sector' for stocks,
            'Category' for funds)

    Returns:
        List of canonical summary dictionaries
    """
    if not raw_rows:
        return []

    seen_symbols = {}

    for raw in raw_rows:
        trimmed = {str(k).strip(): v for k, v in raw.items()}

        canonical: Dict[str, Any] = {'category': _clean_text(trimmed.get(category_field))}
        for header, key in SUMMARY_FIELD_MAP.items():
            value = trimmed.get(header)
            if key in INTEGER_FIELDS:
                canonical[key] = to_int(value)
            elif key in FLOAT_FIELDS:
                canonical[key] = to_float(value)
            else:
                canonical[key] = _clean_text(value)

        seen_symbols[canonical['symbol']] = canonical

    return list(seen_symbols.values())


def normalize_series_rows(raw_rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Transform per-security history rows to canonical shape.

    Rows without a Date or Close are dropped. Duplicate dates keep the
    last row. Output is sorted by date.

    Raises:
        ValidationError: If a Date cell is present but unparseable
    """
    if not raw_rows:
        return []

    seen_dates = {}

    for raw in raw_rows:
        trimmed = {str(k).strip(): v for k, v in raw.items()}

        row_date = to_date(trimmed.get('Date'))
        close = to_float(trimmed.get('Close'))
        if row_date is None or close is None:
            continue

        seen_dates[row_date] = {
            'date': row_date,
            'close': close,
            'volume': to_int(trimmed.get('Volume')),
            'cvi': to_float(trimmed.get('CVI')),
        }

    return [seen_dates[d] for d in sorted(seen_dates)]
