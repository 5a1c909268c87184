"""
Core validators for canonical data rows.
Pure functions - no IO, network, or side effects.
"""

import math
from datetime import date
from typing import Dict, Any, List, Optional

from analysis.calculations.series_math import InvalidArgumentError
from analysis.models import PortfolioHolding, SecurityRecord, TimeSeriesPoint


class ValidationError(InvalidArgumentError):
    """Raised when data validation fails."""
    pass


def _check_number(field: str, value: Any, *, positive: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be numeric, got {type(value)}")

    if not math.isfinite(value):
        raise ValidationError(f"{field} must be finite, got {value}")

    if positive and value <= 0:
        raise ValidationError(f"{field} must be positive, got {value}")

    if value < 0:
        raise ValidationError(f"{field} must be non-negative, got {value}")

    return float(value)


def _check_count(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be integer, got {type(value)}")

    if value < 0:
        raise ValidationError(f"{field} must be non-negative, got {value}")

    return value


def _optional_score(value: Any) -> Optional[float]:
    # Missing scores are allowed here; ranking drops those records
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return float(value)


def validate_security_row(row: Dict[str, Any]) -> SecurityRecord:
    """
    Validate a canonical summary row and build a SecurityRecord.

    Missing close_price, volume, cvi and sec_state default to 0; present
    values must be finite and non-negative.

    Args:
        row: Dictionary from normalize_summary_rows

    Returns:
        SecurityRecord

    Raises:
        ValidationError: If validation fails
    """
    symbol = row.get('symbol')
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError(f"symbol must be non-empty string, got {symbol!r}")

    for field in ['name', 'category']:
        if row.get(field) is not None and not isinstance(row[field], str):
            raise ValidationError(f"{field} must be string, got {type(row[field])}")

    close_price = row.get('close_price')
    volume = row.get('volume')
    cvi = row.get('cvi')
    sec_state = row.get('sec_state')
    thermostat = row.get('thermostat')

    if thermostat is not None and (isinstance(thermostat, bool) or not isinstance(thermostat, int)):
        raise ValidationError(f"thermostat must be integer, got {type(thermostat)}")

    if sec_state is not None and (isinstance(sec_state, bool) or not isinstance(sec_state, int)):
        raise ValidationError(f"sec_state must be integer, got {type(sec_state)}")

    return SecurityRecord(
        symbol=symbol.strip(),
        name=row.get('name') or '',
        category=row.get('category') or '',
        close_price=_check_number('close_price', 0.0 if close_price is None else close_price),
        volume=_check_count('volume', 0 if volume is None else volume),
        cvi=_check_number('cvi', 0.0 if cvi is None else cvi),
        sec_state=0 if sec_state is None else sec_state,
        thermostat=thermostat,
        score=_optional_score(row.get('score')),
        prior_score=_optional_score(row.get('prior_score')),
    )


def validate_series_row(row: Dict[str, Any]) -> TimeSeriesPoint:
    """
    Validate a canonical history row and build a TimeSeriesPoint.

    Raises:
        ValidationError: If validation fails
    """
    missing = {'date', 'close'} - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {missing}")

    if not isinstance(row['date'], date):
        raise ValidationError(f"date must be date, got {type(row['date'])}")

    volume = row.get('volume')
    cvi = row.get('cvi')

    return TimeSeriesPoint(
        date=row['date'],
        close=_check_number('close', row['close'], positive=True),
        volume=_check_count('volume', 0 if volume is None else volume),
        cvi=_check_number('cvi', 0.0 if cvi is None else cvi),
    )


def validate_holding_row(row: Dict[str, Any]) -> PortfolioHolding:
    """
    Validate a persisted holding and build a PortfolioHolding.

    Raises:
        ValidationError: If validation fails
    """
    symbol = row.get('symbol')
    if not isinstance(symbol, str) or not symbol.strip():
        raise ValidationError(f"symbol must be non-empty string, got {symbol!r}")

    allocation = row.get('allocation_percent')
    if allocation is not None:
        allocation = _check_number('allocation_percent', allocation)
        if allocation > 100:
            raise ValidationError(f"allocation_percent must be <= 100, got {allocation}")

    return PortfolioHolding(symbol=symbol.strip(), allocation_percent=allocation)


def check_series_monotonicity(points: List[TimeSeriesPoint]) -> None:
    """
    Check that history dates are strictly increasing.

    Raises:
        ValidationError: If dates are duplicated or out of order
    """
    for i in range(1, len(points)):
        if points[i].date == points[i - 1].date:
            raise ValidationError(f"Duplicate date found: {points[i].date}")

        if points[i].date < points[i - 1].date:
            raise ValidationError(
                f"Dates not monotonic: {points[i].date} after {points[i - 1].date}"
            )
