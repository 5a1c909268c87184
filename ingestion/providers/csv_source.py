"""
Local CSV provider - read dashboard summary and history files.
File IO allowed here, but minimal business logic.
"""

import logging
import pandas as pd
from pathlib import Path
from typing import Dict, Any, List, Union

from analysis.models import SecurityRecord, TimeSeriesPoint
from ingestion.transforms.normalizers import normalize_series_rows, normalize_summary_rows
from ingestion.transforms.validators import (
    check_series_monotonicity,
    validate_security_row,
    validate_series_row,
)


logger = logging.getLogger(__name__)


class CsvSourceError(Exception):
    """Raised when a CSV file cannot be read or is empty."""
    pass


def _read_rows(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        raise CsvSourceError(f"Data file not found: {path}")

    try:
        df = pd.read_csv(path, skipinitialspace=True)
    except pd.errors.EmptyDataError as e:
        raise CsvSourceError(f"Empty data received from {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise CsvSourceError(f"Failed to parse {path}: {e}") from e

    if df.empty:
        raise CsvSourceError(f"No rows in {path}")

    # NaN -> None so normalizers see missing cells, not floats
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict('records')


def load_security_records(
    path: Union[str, Path],
    category_field: str = 'Sector'
) -> List[SecurityRecord]:
    """
    Load a summary CSV (one row per security) into SecurityRecords.

    Raises:
        CsvSourceError: If the file is missing, empty or unparseable
        ValidationError: If a row is malformed
    """
    raw_rows = _read_rows(Path(path))
    records = [
        validate_security_row(row)
        for row in normalize_summary_rows(raw_rows, category_field=category_field)
    ]
    logger.info(f"Loaded {len(records)} security records from {path}")
    return records


class CsvSeriesSource:
    """Fetch a symbol's history from {data_dir}/{SYMBOL}_data.csv."""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def path_for(self, symbol: str) -> Path:
        return self.data_dir / f"{symbol}_data.csv"

    def __call__(self, symbol: str) -> List[TimeSeriesPoint]:
        raw_rows = _read_rows(self.path_for(symbol))
        points = [validate_series_row(row) for row in normalize_series_rows(raw_rows)]

        if not points:
            raise CsvSourceError(f"No valid history rows for {symbol}")

        check_series_monotonicity(points)
        logger.info(f"Loaded {len(points)} history rows for {symbol}")
        return points
