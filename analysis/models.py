"""
Typed records shared by the ranking, volatility and portfolio engines.
Plain dataclasses - no IO, no validation (see ingestion.transforms.validators).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class SecurityRecord:
    """Summary snapshot of one security for a refresh cycle."""
    symbol: str
    name: str = ''
    category: str = ''
    close_price: float = 0.0
    volume: int = 0
    cvi: float = 0.0
    sec_state: int = 0
    thermostat: Optional[int] = None
    score: Optional[float] = None
    prior_score: Optional[float] = None


@dataclass(frozen=True)
class RankedRecord:
    """SecurityRecord plus its current and prior-week rank."""
    record: SecurityRecord
    rank: int
    prior_rank: int
    rank_change: int

    @property
    def symbol(self) -> str:
        return self.record.symbol


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One trading day of a security's history."""
    date: date
    close: float
    volume: int = 0
    cvi: float = 0.0


@dataclass(frozen=True)
class PortfolioHolding:
    """User-entered allocation (percent, 0-100) for one symbol."""
    symbol: str
    allocation_percent: Optional[float] = None


@dataclass(frozen=True)
class PortfolioMetrics:
    """Derived portfolio analytics - recomputed, never mutated."""
    dates: List[date]
    normalized_price_series: List[float]
    rolling_cvi_series: List[int]
    weighted_cvi_series: List[float]
    weighted_average_cvi: float
    portfolio_cvi: int
    diversification_benefit_percent: float
    diversification_benefit_series: List[float] = field(default_factory=list)

    @property
    def history_days(self) -> int:
        return len(self.normalized_price_series)
