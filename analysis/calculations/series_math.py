"""
Series math primitives.
Pure functions for moving averages, squared log returns and EWMA variance.
"""

import math
import numpy as np
from typing import List, Optional, Sequence


class InvalidArgumentError(ValueError):
    """Raised when numeric input is malformed."""
    pass


def _as_finite_array(series: Sequence[float]) -> np.ndarray:
    values = np.asarray(series, dtype=np.float64)
    if values.size and not np.all(np.isfinite(values)):
        raise InvalidArgumentError("NaN or infinite values not allowed")
    return values


def moving_average(series: Sequence[float], window: int) -> List[Optional[float]]:
    """
    Simple moving average with one output per input index.

    Index i is None while i < window - 1, otherwise the mean of
    series[i - window + 1 .. i]. Every window sum is computed exactly with
    math.fsum, so results do not depend on the position in the series.

    Args:
        series: Values in chronological order
        window: Number of values per average (>= 1)

    Returns:
        List the same length as series

    Raises:
        InvalidArgumentError: If window < 1 or series has non-finite values
    """
    if not isinstance(window, int) or isinstance(window, bool) or window < 1:
        raise InvalidArgumentError(f"Window must be a positive integer, got {window!r}")

    values = _as_finite_array(series)
    n = len(values)

    if window == 1:
        return [float(v) for v in values]

    result: List[Optional[float]] = [None] * n
    if n < window:
        return result

    # Each window is summed on its own so long series do not accumulate drift
    windows = np.lib.stride_tricks.sliding_window_view(values, window)
    for offset, chunk in enumerate(windows):
        result[window - 1 + offset] = math.fsum(chunk) / window

    return result


def log_returns_squared(series: Sequence[float]) -> List[float]:
    """
    Squared log returns: r[0] = 0, r[i] = ln(series[i] / series[i-1]) ** 2.

    Raises:
        InvalidArgumentError: If any value is zero, negative or non-finite
    """
    prices = _as_finite_array(series)
    if prices.size == 0:
        return []

    if np.any(prices <= 0):
        raise InvalidArgumentError("Zero or negative prices not allowed")

    squared = np.zeros(len(prices), dtype=np.float64)
    squared[1:] = np.log(prices[1:] / prices[:-1]) ** 2

    return squared.tolist()


def ewma_variance(squared_returns: Sequence[float], period: int) -> List[float]:
    """
    Exponentially-weighted moving average of squared returns.

    The average is seeded with the simple mean of squared_returns[1..period]
    (index 0 is the forced-zero return) and then smoothed with
    alpha = 2 / (period + 1):

        ema[period] = seed
        ema[i]      = ema[i-1] + alpha * (squared_returns[i] - ema[i-1])

    Entries before index period are 0 (warm-up). Input of length <= period
    cannot be seeded and yields all zeros.

    Raises:
        InvalidArgumentError: If period < 1 or input has non-finite values
    """
    if not isinstance(period, int) or isinstance(period, bool) or period < 1:
        raise InvalidArgumentError(f"Period must be a positive integer, got {period!r}")

    values = _as_finite_array(squared_returns)
    n = len(values)
    ema = [0.0] * n

    if n <= period:
        return ema

    alpha = 2.0 / (period + 1)
    current = math.fsum(values[1:period + 1]) / period
    ema[period] = current

    for i in range(period + 1, n):
        current = current + alpha * (float(values[i]) - current)
        ema[i] = current

    return ema
