"""
Holdings list editing and the 100% allocation rule.
Pure functions - each edit returns a new list.
"""

import math
from typing import List, Sequence, Union

from analysis.calculations.series_math import InvalidArgumentError
from analysis.models import PortfolioHolding


ALLOCATION_TOLERANCE = 0.01


def total_allocation(holdings: Sequence[PortfolioHolding]) -> float:
    """Sum of allocation_percent, ignoring holdings without an allocation."""
    return math.fsum(
        h.allocation_percent for h in holdings if h.allocation_percent is not None
    )


def is_allocation_valid(holdings: Sequence[PortfolioHolding]) -> bool:
    """True when allocations sum to 100 within ALLOCATION_TOLERANCE."""
    if not holdings:
        return False
    return abs(total_allocation(holdings) - 100.0) < ALLOCATION_TOLERANCE


def check_allocation_range(holdings: Sequence[PortfolioHolding]) -> None:
    """
    Reject allocations outside 0-100.

    Raises:
        InvalidArgumentError: If any set allocation is negative, above 100
            or not finite
    """
    for h in holdings:
        allocation = h.allocation_percent
        if allocation is None:
            continue
        if not math.isfinite(allocation) or allocation < 0 or allocation > 100:
            raise InvalidArgumentError(
                f"allocation for {h.symbol} must be between 0 and 100, got {allocation!r}"
            )


def add_holding(holdings: Sequence[PortfolioHolding], symbol: str) -> List[PortfolioHolding]:
    """Append symbol with a zero allocation unless it is already held."""
    symbol = symbol.strip()
    if not symbol:
        raise InvalidArgumentError("symbol must be non-empty string")

    if any(h.symbol == symbol for h in holdings):
        return list(holdings)

    return list(holdings) + [PortfolioHolding(symbol=symbol, allocation_percent=0.0)]


def remove_holding(holdings: Sequence[PortfolioHolding], symbol: str) -> List[PortfolioHolding]:
    return [h for h in holdings if h.symbol != symbol]


def parse_allocation(value: Union[str, float, int, None]) -> float:
    """
    Coerce a user-entered allocation to a float percent.

    Blank or non-numeric input becomes 0.0; numeric input outside 0-100
    is rejected.

    Raises:
        InvalidArgumentError: If the value is outside 0-100 or not finite
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0.0
    else:
        parsed = float(value)

    if math.isnan(parsed):
        return 0.0

    if not math.isfinite(parsed) or parsed < 0 or parsed > 100:
        raise InvalidArgumentError(f"allocation must be between 0 and 100, got {value!r}")

    return parsed


def update_allocation(
    holdings: Sequence[PortfolioHolding],
    symbol: str,
    value: Union[str, float, int, None]
) -> List[PortfolioHolding]:
    """Set the allocation for symbol; other holdings are unchanged."""
    allocation = parse_allocation(value)
    return [
        PortfolioHolding(symbol=h.symbol, allocation_percent=allocation)
        if h.symbol == symbol else h
        for h in holdings
    ]


def weighted_holdings(holdings: Sequence[PortfolioHolding]) -> List[PortfolioHolding]:
    """Holdings that take part in aggregation (allocation set and non-zero)."""
    return [h for h in holdings if h.allocation_percent]

