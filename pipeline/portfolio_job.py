"""
Portfolio aggregation job - orchestrates fetch and compute for one request.
Composes: Allocation check → Concurrent fetch → Aggregate → Publish.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from analysis.calculations.series_math import InvalidArgumentError
from analysis.holdings import check_allocation_range, is_allocation_valid, weighted_holdings
from analysis.models import PortfolioHolding, PortfolioMetrics, TimeSeriesPoint
from analysis.portfolio_aggregator import InsufficientDataError, aggregate_portfolio, weighted_average_cvi
from pipeline.config import PortfolioJobConfig


logger = logging.getLogger(__name__)

FetchHistory = Callable[[str], Sequence[TimeSeriesPoint]]


class FetchFailureError(Exception):
    """Raised when any per-holding history fetch fails."""
    pass


class JobState(str, Enum):
    """Enumeration of aggregation request states."""
    IDLE = 'idle'
    FETCHING = 'fetching'
    COMPUTING = 'computing'
    READY = 'ready'
    FAILED = 'failed'


@dataclass(frozen=True)
class JobResult:
    """Outcome of one aggregation request."""
    request_id: int
    state: JobState
    metrics: Optional[PortfolioMetrics] = None
    error: Optional[str] = None
    weighted_average_cvi: Optional[float] = None
    unavailable: bool = False
    stale: bool = False


class PortfolioJob:
    """
    Runs portfolio aggregation requests with last-request-wins publishing.

    Each run() takes a new request id. Histories for every weighted holding
    are fetched concurrently and the request proceeds only once all of them
    have settled; one failed fetch fails the whole request. A result is
    published only if no newer request has started in the meantime.
    """

    def __init__(
        self,
        fetch_history: FetchHistory,
        config: Optional[PortfolioJobConfig] = None,
        latest_cvi: Optional[Mapping[str, float]] = None,
        on_state_change: Optional[Callable[[int, JobState], None]] = None
    ):
        self.fetch_history = fetch_history
        self.config = config or PortfolioJobConfig()
        self.latest_cvi = latest_cvi
        self.on_state_change = on_state_change

        self._lock = threading.Lock()
        self._latest_request = 0
        self._published = JobResult(request_id=0, state=JobState.IDLE)

    def snapshot(self) -> JobResult:
        """Currently published result."""
        with self._lock:
            return self._published

    def _next_request_id(self) -> int:
        with self._lock:
            self._latest_request += 1
            return self._latest_request

    def _is_current(self, request_id: int) -> bool:
        with self._lock:
            return request_id == self._latest_request

    def _transition(self, request_id: int, state: JobState) -> None:
        logger.debug(f"Portfolio request {request_id}: {state.value}")
        if self.on_state_change is not None:
            self.on_state_change(request_id, state)

    def _publish(self, result: JobResult, settled: Optional[JobResult] = None) -> JobResult:
        """Publish settled (or result) unless a newer request exists."""
        with self._lock:
            if result.request_id != self._latest_request:
                logger.info(
                    f"Discarding portfolio request {result.request_id}, "
                    f"superseded by {self._latest_request}"
                )
                return replace(result, stale=True)

            self._published = settled or result
            return result

    def fetch_histories(self, symbols: List[str]) -> Dict[str, List[TimeSeriesPoint]]:
        """
        Fetch every symbol's history concurrently, all-or-nothing.

        Raises:
            FetchFailureError: If any fetch raises or the batch times out
        """
        if not symbols:
            return {}

        histories: Dict[str, List[TimeSeriesPoint]] = {}
        executor = ThreadPoolExecutor(max_workers=min(self.config.fetch_workers, len(symbols)))

        try:
            futures = {executor.submit(self.fetch_history, symbol): symbol for symbol in symbols}

            for future in as_completed(futures, timeout=self.config.fetch_timeout_s):
                symbol = futures[future]
                try:
                    histories[symbol] = list(future.result())
                except Exception as e:
                    raise FetchFailureError(f"Failed to fetch data for {symbol}: {e}") from e

        except FuturesTimeoutError as e:
            raise FetchFailureError(
                f"Timed out after {self.config.fetch_timeout_s}s waiting for history fetches"
            ) from e

        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        logger.info(f"Fetched histories for {len(histories)} holdings")
        return histories

    def run(self, holdings: Sequence[PortfolioHolding]) -> JobResult:
        """
        Run one aggregation request.

        When latest CVIs were supplied, the weighted average CVI is computed
        before any fetch and reported on every result for this request,
        including failed ones.

        Returns:
            JobResult in state ready (metrics set), idle with unavailable=True
            (allocations do not sum to 100), or failed (error set). Failed
            requests leave the published snapshot idle with no metrics.
        """
        request_id = self._next_request_id()

        if not is_allocation_valid(holdings):
            return self._publish(JobResult(
                request_id=request_id,
                state=JobState.IDLE,
                unavailable=True
            ))

        symbols = [h.symbol for h in weighted_holdings(holdings)]
        avg_cvi = None

        try:
            check_allocation_range(holdings)
            if self.latest_cvi is not None:
                avg_cvi = weighted_average_cvi(holdings, self.latest_cvi)

            self._transition(request_id, JobState.FETCHING)
            histories = self.fetch_histories(symbols)

            if not self._is_current(request_id):
                return self._publish(JobResult(
                    request_id=request_id,
                    state=JobState.IDLE,
                    weighted_average_cvi=avg_cvi
                ))

            self._transition(request_id, JobState.COMPUTING)
            metrics = aggregate_portfolio(holdings, histories, self.latest_cvi)

        except (FetchFailureError, InsufficientDataError, InvalidArgumentError) as e:
            logger.error(f"Portfolio request {request_id} failed: {e}")
            self._transition(request_id, JobState.FAILED)

            failed = JobResult(
                request_id=request_id,
                state=JobState.FAILED,
                error=str(e),
                weighted_average_cvi=avg_cvi
            )
            return self._publish(failed, settled=replace(failed, state=JobState.IDLE))

        self._transition(request_id, JobState.READY)
        return self._publish(JobResult(
            request_id=request_id,
            state=JobState.READY,
            metrics=metrics,
            weighted_average_cvi=metrics.weighted_average_cvi
        ))
