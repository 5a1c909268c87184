"""
Portfolio aggregator - combines holdings into one synthetic instrument.
Pure function that composes weighted price, weighted CVI, the portfolio's
own rolling CVI and the diversification benefit.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Mapping, Optional, Sequence

from analysis.calculations.volatility import compute_cvi
from analysis.holdings import (
    check_allocation_range,
    is_allocation_valid,
    total_allocation,
    weighted_holdings
)
from analysis.models import PortfolioHolding, PortfolioMetrics, TimeSeriesPoint


logger = logging.getLogger(__name__)

PORTFOLIO_WINDOW_DAYS = 250
NORMALIZED_BASE = 100.0


class InsufficientDataError(Exception):
    """Raised when a holding has no usable history."""
    pass


def weighted_average_cvi(
    holdings: Sequence[PortfolioHolding],
    latest_cvi: Mapping[str, float]
) -> float:
    """
    Allocation-weighted average of each holding's latest point CVI.

    Formula: Σ (allocation_i / 100) × CVI_i

    Raises:
        InsufficientDataError: If a weighted holding has no latest CVI
        InvalidArgumentError: If an allocation is outside 0-100
    """
    check_allocation_range(holdings)

    total = 0.0
    for holding in weighted_holdings(holdings):
        if holding.symbol not in latest_cvi:
            raise InsufficientDataError(f"No latest CVI for {holding.symbol}")
        total += (holding.allocation_percent / 100.0) * float(latest_cvi[holding.symbol])
    return total


def diversification_benefit(portfolio_cvi: float, weighted_cvi: float) -> float:
    """Percent reduction of portfolio CVI versus the weighted average CVI."""
    if not portfolio_cvi or not weighted_cvi:
        return 0.0
    return (1.0 - portfolio_cvi / weighted_cvi) * 100.0


def align_histories(
    holdings: Sequence[PortfolioHolding],
    histories: Mapping[str, Sequence[TimeSeriesPoint]],
    max_days: int = PORTFOLIO_WINDOW_DAYS
) -> Dict[str, List[TimeSeriesPoint]]:
    """
    Right-align histories on their most recent day.

    Every holding is trimmed to the trailing min(shortest history, max_days)
    points so all series share one window ending on the latest date.

    Raises:
        InsufficientDataError: If a holding's history is missing or empty
    """
    included = weighted_holdings(holdings)
    if not included:
        raise InsufficientDataError("No holdings with a non-zero allocation")

    for holding in included:
        if not histories.get(holding.symbol):
            raise InsufficientDataError(f"No price history for {holding.symbol}")

    shortest = min(len(histories[h.symbol]) for h in included)
    window = min(shortest, max_days)

    return {h.symbol: list(histories[h.symbol][-window:]) for h in included}


def aggregate_portfolio(
    holdings: Sequence[PortfolioHolding],
    histories: Mapping[str, Sequence[TimeSeriesPoint]],
    latest_cvi: Optional[Mapping[str, float]] = None
) -> Optional[PortfolioMetrics]:
    """
    Compose all portfolio metrics from holdings and their fetched histories.

    Args:
        holdings: Holdings with allocation percents summing to 100
        histories: Chronological history per symbol for every non-zero holding
        latest_cvi: Latest point CVI per symbol (defaults to the last
            history point's CVI)

    Returns:
        PortfolioMetrics, or None when allocations do not sum to 100
        (metrics unavailable, not an error). Windows shorter than the CVI
        warm-up produce all-zero rolling CVI and diversification series.

    Raises:
        InsufficientDataError: If a weighted holding has no history
        InvalidArgumentError: If an allocation is outside 0-100 or aligned
            prices are not positive
    """
    check_allocation_range(holdings)

    if not is_allocation_valid(holdings):
        logger.info(
            f"Allocation totals {total_allocation(holdings):.2f}%, portfolio metrics unavailable"
        )
        return None

    aligned = align_histories(holdings, histories)
    included = weighted_holdings(holdings)

    if latest_cvi is None:
        latest_cvi = {symbol: points[-1].cvi for symbol, points in aligned.items()}

    avg_cvi = weighted_average_cvi(holdings, latest_cvi)

    weights = np.array([h.allocation_percent / 100.0 for h in included])
    closes = np.array([[p.close for p in aligned[h.symbol]] for h in included])
    point_cvis = np.array([[p.cvi for p in aligned[h.symbol]] for h in included])

    weighted_price = weights @ closes
    weighted_cvi = weights @ point_cvis

    normalized = weighted_price / weighted_price[0] * NORMALIZED_BASE
    rolling_cvi = compute_cvi(normalized.tolist())

    benefit_series = [
        diversification_benefit(rolling, weighted)
        for rolling, weighted in zip(rolling_cvi, weighted_cvi.tolist())
    ]

    portfolio_cvi = rolling_cvi[-1]
    window = len(normalized)

    logger.info(
        f"Aggregated {len(included)} holdings over {window} days: "
        f"portfolio CVI {portfolio_cvi}, weighted CVI {avg_cvi:.1f}"
    )

    return PortfolioMetrics(
        dates=[p.date for p in aligned[included[0].symbol]],
        normalized_price_series=normalized.tolist(),
        rolling_cvi_series=rolling_cvi,
        weighted_cvi_series=weighted_cvi.tolist(),
        weighted_average_cvi=avg_cvi,
        portfolio_cvi=portfolio_cvi,
        diversification_benefit_percent=diversification_benefit(portfolio_cvi, avg_cvi),
        diversification_benefit_series=benefit_series,
    )


def export_frame(metrics: PortfolioMetrics) -> pd.DataFrame:
    """
    Tabulate metrics one row per aligned day for export.

    Columns: day (1-based), portfolio_value, portfolio_cvi,
    weighted_average_cvi, diversification_benefit.
    """
    days = metrics.history_days
    return pd.DataFrame({
        'day': range(1, days + 1),
        'portfolio_value': metrics.normalized_price_series,
        'portfolio_cvi': [float(v) for v in metrics.rolling_cvi_series],
        'weighted_average_cvi': metrics.weighted_cvi_series,
        'diversification_benefit': metrics.diversification_benefit_series,
    })
