"""
Single-security chart series: close with SMA50/SMA200 overlays.
"""

from typing import Any, Dict, List, Sequence

from analysis.calculations.volatility import compute_sma
from analysis.models import TimeSeriesPoint


CHART_DISPLAY_DAYS = 250
SHORT_SMA_PERIODS = 50
LONG_SMA_PERIODS = 200


def build_chart_series(
    points: Sequence[TimeSeriesPoint],
    display_days: int = CHART_DISPLAY_DAYS
) -> List[Dict[str, Any]]:
    """
    Build aligned chart rows for the trailing display_days of history.

    SMAs are computed over the full history before slicing, so the first
    displayed rows already carry long-window averages when enough history
    exists.

    Args:
        points: Full chronological history for one security
        display_days: Number of trailing days to return

    Returns:
        List of dicts with date, close, volume, cvi, sma50, sma200, is_up
    """
    if not points:
        return []

    sma50 = compute_sma(points, SHORT_SMA_PERIODS)
    sma200 = compute_sma(points, LONG_SMA_PERIODS)

    start = max(0, len(points) - display_days)

    rows = []
    for i in range(start, len(points)):
        point = points[i]
        prev_close = points[i - 1].close if i > 0 else point.close
        rows.append({
            'date': point.date,
            'close': point.close,
            'volume': point.volume,
            'cvi': point.cvi,
            'sma50': sma50[i],
            'sma200': sma200[i],
            'is_up': point.close > prev_close,
        })

    return rows
