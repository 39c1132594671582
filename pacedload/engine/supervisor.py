"""Client supervisor: one thread and one event loop per client.

Each client id in ``[0, client_count)`` gets a dedicated worker thread that
builds its own event loop with ``asyncio.run`` and drives exactly one
``PacedSender`` on it. Threads share nothing mutable: the config and payload
are immutable, and each sender owns its connection and counters. The only
communication back to the supervisor is the value each thread returns when
it is joined.

The supervisor has no timeout. A session whose connect never returns keeps
``run()`` blocked, which is accepted behaviour.
"""

import asyncio
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

import structlog

from ..common.config import LoadConfig
from ..common.logging import log_performance
from ..common.metrics import LoadMetrics
from ..common.payload import Payload
from .outcome import RunReport, SessionOutcome, SessionStatus
from .sender import PacedSender

logger = structlog.get_logger("supervisor")

SenderFactory = Callable[[int, LoadConfig, Payload, Optional[LoadMetrics]], PacedSender]


def _default_sender_factory(
    client_id: int,
    config: LoadConfig,
    payload: Payload,
    metrics: Optional[LoadMetrics],
) -> PacedSender:
    return PacedSender(client_id, config, payload, metrics=metrics)


class ClientSupervisor:
    """Fans out one paced sender per client and joins them all.

    Parameters
    - config: Immutable run configuration
    - payload: Immutable payload shared by every session
    - metrics: Optional collectors shared by all sessions (thread-safe)
    - sender_factory: Builds the sender for a client id; tests swap it to
      inject failures
    """

    def __init__(
        self,
        config: LoadConfig,
        payload: Payload,
        metrics: Optional[LoadMetrics] = None,
        sender_factory: SenderFactory = _default_sender_factory,
    ):
        self.config = config
        self.payload = payload
        self.metrics = metrics
        self.sender_factory = sender_factory

    def _run_client(self, client_id: int) -> SessionOutcome:
        """Worker thread body: a private event loop running one session."""
        sender = self.sender_factory(client_id, self.config, self.payload, self.metrics)
        return asyncio.run(sender.run())

    def _collect(self, client_id: int, future: Future) -> SessionOutcome:
        error = future.exception()
        if error is None:
            return future.result()

        logger.error(
            "Client thread crashed",
            client_id=client_id,
            error=repr(error),
            exc_info=error,
        )
        if self.metrics:
            self.metrics.record_session(SessionStatus.CRASHED.value)
        return SessionOutcome(
            client_id=client_id,
            status=SessionStatus.CRASHED,
            error=repr(error),
        )

    def run(self) -> RunReport:
        """Start every client, block until all have terminated, and report."""
        client_count = self.config.client_count
        logger.info(
            "Starting clients",
            client_count=client_count,
            request_count=self.config.request_count,
            rate=self.config.rate,
            target=self.config.target,
        )

        start = time.perf_counter()
        futures: Dict[int, Future] = {}
        with ThreadPoolExecutor(max_workers=client_count, thread_name_prefix="client") as pool:
            for client_id in range(client_count):
                futures[client_id] = pool.submit(self._run_client, client_id)
        wall_seconds = time.perf_counter() - start

        outcomes: List[SessionOutcome] = [
            self._collect(client_id, futures[client_id]) for client_id in range(client_count)
        ]
        report = RunReport(outcomes=outcomes, wall_seconds=wall_seconds)

        log_performance(
            "load_run",
            duration_ms=wall_seconds * 1000,
            client_count=client_count,
            completed=len(report.completed),
            failed=len(report.failed),
            total_sent=report.total_sent,
        )
        return report
