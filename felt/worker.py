"""
Background worker for engine requests.

Equity and solver calls are CPU bound and can take seconds. The worker
runs them on a dedicated executor so a calling thread (a UI loop, a
server handler) is never blocked. Every request produces exactly one
response, either a result or an error. There is no per-request
cancellation; shut the worker down to stop it.
"""

import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import numpy as np

from felt.game.equity import EquityCalculator
from felt.game.ranges import HandRange
from felt.solver.cfr import CFRSolver, SolverConfig

logger = logging.getLogger("felt.worker")


@dataclass
class EquityRequest:
    """Equity against random (or one known) opponent hands."""
    id: str
    hero_cards: list[str]
    community_cards: list[str] = field(default_factory=list)
    num_opponents: int = 1
    num_simulations: int = 10000
    villain_cards: Optional[list[str]] = None
    seed: Optional[int] = None


@dataclass
class RangeEquityRequest:
    """Equity against a weighted villain range."""
    id: str
    hero_cards: list[str]
    community_cards: list[str]
    villain_range: HandRange
    sims_per_combo: int = 100
    seed: Optional[int] = None


@dataclass
class SolveRequest:
    """A CFR solve."""
    id: str
    config: SolverConfig
    seed: Optional[int] = None


Request = Union[EquityRequest, RangeEquityRequest, SolveRequest]


@dataclass
class WorkerResponse:
    """Result or error for one request."""
    id: str
    type: str      # "equity", "range_equity", "solve" or "error"
    payload: Any   # EquityResult, SolverResult or error message

    @property
    def ok(self) -> bool:
        return self.type != "error"


def handle_request(request: Request) -> WorkerResponse:
    """
    Run one request to completion.

    Exceptions are logged and turned into an error response.
    """
    rng = np.random.default_rng(request.seed)

    try:
        if isinstance(request, EquityRequest):
            result = EquityCalculator(rng).calculate_equity(
                request.hero_cards,
                request.community_cards,
                request.num_opponents,
                request.num_simulations,
                request.villain_cards,
            )
            return WorkerResponse(request.id, "equity", result)

        if isinstance(request, RangeEquityRequest):
            result = EquityCalculator(rng).calculate_equity_vs_range(
                request.hero_cards,
                request.community_cards,
                request.villain_range,
                request.sims_per_combo,
            )
            return WorkerResponse(request.id, "range_equity", result)

        if isinstance(request, SolveRequest):
            result = CFRSolver(request.config, rng=rng).solve()
            return WorkerResponse(request.id, "solve", result)

        raise TypeError(f"Unknown request type: {type(request).__name__}")

    except Exception as e:
        logger.exception("Request %s failed", request.id)
        return WorkerResponse(request.id, "error", str(e))


class EngineWorker:
    """
    Runs engine requests off the calling thread.

    Uses a single worker thread by default; pass `use_processes=True`
    to run requests in a worker process instead.
    """

    def __init__(self, use_processes: bool = False, max_workers: int = 1):
        self.use_processes = use_processes
        self.max_workers = max_workers
        self._executor: Optional[Executor] = None

    def _get_executor(self) -> Executor:
        if self._executor is None:
            if self.use_processes:
                self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
            else:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="felt-worker",
                )
        return self._executor

    def submit(self, request: Request) -> "Future[WorkerResponse]":
        """Queue a request; the future resolves to its response."""
        logger.debug("Submitting %s %s", type(request).__name__, request.id)
        return self._get_executor().submit(handle_request, request)

    def run(self, request: Request) -> WorkerResponse:
        """Submit a request and wait for its response."""
        return self.submit(request).result()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker. Queued requests are cancelled."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "EngineWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
