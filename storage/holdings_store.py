"""
Holdings store - persist the user's holdings list between sessions.
Thin IO layer; the engine only sees PortfolioHolding values.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict
from pathlib import Path
from typing import List, Sequence, Union

from analysis.models import PortfolioHolding
from ingestion.transforms.validators import ValidationError, validate_holding_row
from storage.atomic_writer import write_json_atomic


logger = logging.getLogger(__name__)


class HoldingsStoreError(Exception):
    """Raised when holdings cannot be loaded or saved."""
    pass


class HoldingsStore(ABC):
    """Load/save capability for the holdings list."""

    @abstractmethod
    def load(self) -> List[PortfolioHolding]:
        """Return the persisted holdings in order."""

    @abstractmethod
    def save(self, holdings: Sequence[PortfolioHolding]) -> None:
        """Replace the persisted holdings."""


class InMemoryHoldingsStore(HoldingsStore):
    """Holdings kept in process memory."""

    def __init__(self, holdings: Sequence[PortfolioHolding] = ()):
        self._holdings = list(holdings)

    def load(self) -> List[PortfolioHolding]:
        return list(self._holdings)

    def save(self, holdings: Sequence[PortfolioHolding]) -> None:
        self._holdings = list(holdings)


class JsonHoldingsStore(HoldingsStore):
    """
    Holdings persisted as a JSON list of {symbol, allocation_percent}.

    A missing file is an empty portfolio. Writes are atomic.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[PortfolioHolding]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                rows = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise HoldingsStoreError(f"Cannot read holdings from {self.path}: {e}") from e

        if not isinstance(rows, list):
            raise HoldingsStoreError(f"Holdings file {self.path} must contain a list")

        holdings = []
        seen = set()
        for row in rows:
            if not isinstance(row, dict):
                raise HoldingsStoreError(f"Holding entry must be an object, got {type(row)}")
            try:
                holding = validate_holding_row(row)
            except ValidationError as e:
                raise HoldingsStoreError(f"Invalid holding in {self.path}: {e}") from e

            if holding.symbol in seen:
                logger.warning(f"Duplicate holding {holding.symbol} in {self.path}, keeping first")
                continue
            seen.add(holding.symbol)
            holdings.append(holding)

        return holdings

    def save(self, holdings: Sequence[PortfolioHolding]) -> None:
        result = write_json_atomic([asdict(h) for h in holdings], self.path)

        if result['status'] != 'completed':
            raise HoldingsStoreError(f"Cannot save holdings to {self.path}: {result['error']}")

        logger.info(f"Saved {len(holdings)} holdings to {self.path}")
