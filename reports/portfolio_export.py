"""
Portfolio CSV export - day-by-day portfolio value, CVI and diversification.
"""

from pathlib import Path
from typing import Dict, Any

from analysis.models import PortfolioMetrics
from analysis.portfolio_aggregator import export_frame
from storage.atomic_writer import write_text_atomic


EXPORT_COLUMNS = {
    'day': 'Day',
    'portfolio_value': 'Portfolio Value',
    'portfolio_cvi': 'Portfolio CVI',
    'weighted_average_cvi': 'Weighted Average CVI',
    'diversification_benefit': 'Benefit of Diversification',
}


def render_portfolio_csv(metrics: PortfolioMetrics) -> str:
    """Render metrics as CSV text with display rounding."""
    df = export_frame(metrics)

    df['portfolio_value'] = df['portfolio_value'].map(lambda v: f"{v:.2f}")
    for column in ['portfolio_cvi', 'weighted_average_cvi', 'diversification_benefit']:
        df[column] = df[column].map(lambda v: f"{v:.1f}")

    return df.rename(columns=EXPORT_COLUMNS).to_csv(index=False, lineterminator='\n')


def write_portfolio_csv(metrics: PortfolioMetrics, output_path: Path) -> Dict[str, Any]:
    """
    Write the portfolio export CSV atomically.

    Returns:
        Dictionary with write results (see storage.atomic_writer)
    """
    return write_text_atomic(render_portfolio_csv(metrics), Path(output_path))
