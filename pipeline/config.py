"""
Environment-driven configuration for the portfolio pipeline.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class PortfolioJobConfig:
    """Configuration for portfolio aggregation runs."""
    fetch_workers: int = 5
    fetch_timeout_s: float = 30.0
    holdings_path: Path = Path('./data/portfolio.json')
    data_dir: Path = Path('./data/series')
    log_level: str = 'INFO'

    def __post_init__(self):
        """Validate and coerce types."""
        self.fetch_workers = int(self.fetch_workers)
        self.fetch_timeout_s = float(self.fetch_timeout_s)
        self.holdings_path = Path(self.holdings_path)
        self.data_dir = Path(self.data_dir)
        self.log_level = str(self.log_level).upper()

        if self.fetch_workers < 1:
            raise ValueError("fetch_workers must be >= 1")

        if self.fetch_timeout_s <= 0:
            raise ValueError("fetch_timeout_s must be positive")

    @classmethod
    def from_env(cls) -> 'PortfolioJobConfig':
        return cls(
            fetch_workers=int(os.getenv('PORTFOLIO_FETCH_WORKERS', '5')),
            fetch_timeout_s=float(os.getenv('REQUESTS_TIMEOUT_S', '30')),
            holdings_path=Path(os.getenv('HOLDINGS_STORE_PATH', './data/portfolio.json')),
            data_dir=Path(os.getenv('SERIES_DATA_DIR', './data/series')),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
        )
