"""
Volatility calculation utilities.
Pure functions for the continuous volatility index (CVI) and SMA overlays.
"""

import math
from typing import List, Optional, Sequence

from analysis.calculations.series_math import (
    ewma_variance,
    log_returns_squared,
    moving_average,
)
from analysis.models import TimeSeriesPoint


CVI_PERIOD = 67
CVI_MIN_HISTORY = CVI_PERIOD + 1
TRADING_DAYS_PER_YEAR = 252
CVI_SCALE = 500


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_cvi(prices: Sequence[float]) -> List[int]:
    """
    Calculate the rolling continuous volatility index for a price series.

    Formula: CVI_t = round(sqrt(EWMA_67(r^2)_t) × √252 × 500)

    where r is the daily log return. The first 67 values are 0 (warm-up).

    Args:
        prices: Closing prices in chronological order

    Returns:
        Integer CVI per input index. Series shorter than 68 prices are
        returned as all zeros (not enough history yet, not an error).

    Raises:
        InvalidArgumentError: If prices contain zero, negative or non-finite values
    """
    if len(prices) < CVI_MIN_HISTORY:
        return [0] * len(prices)

    squared = log_returns_squared(prices)
    variance = ewma_variance(squared, CVI_PERIOD)

    scale = math.sqrt(TRADING_DAYS_PER_YEAR) * CVI_SCALE
    return [_round_half_up(math.sqrt(v) * scale) for v in variance]


def compute_sma(points: Sequence[TimeSeriesPoint], periods: int) -> List[Optional[float]]:
    """Simple moving average of closing prices, None during warm-up."""
    return moving_average([p.close for p in points], periods)
