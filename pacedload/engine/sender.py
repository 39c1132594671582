"""Paced sender: one connection, one fixed-rate send loop.

A sender moves through ``CONNECTING -> RUNNING -> DRAINING -> TERMINATED``.
Connect and write failures are fatal to the session only; they are turned
into a ``SessionOutcome`` instead of propagating, so sibling sessions and the
supervisor are unaffected.

All state on a sender is owned by the event loop that runs it. A sender must
not be shared between threads.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from ..common.config import LoadConfig
from ..common.errors import SessionConnectError, SessionError, SessionSendError
from ..common.logging import ServiceLogger
from ..common.metrics import LoadMetrics
from ..common.payload import Payload
from ..performance.stats import summarize_latencies
from .outcome import SessionOutcome, SessionStatus
from .ticker import RateTicker


class SenderState(Enum):
    """Lifecycle states of a paced sender."""
    CONNECTING = "connecting"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class PacedSender:
    """Writes a fixed payload to one connection at a steady rate.

    Parameters
    - client_id: 0-based ordinal of this session within the run
    - config: Shared, immutable run configuration
    - payload: Shared, immutable message buffer
    - metrics: Optional collectors; recording is skipped when omitted
    - clock: Monotonic nanosecond clock (injectable for tests)
    - sleep: Coroutine sleep used for ticks and the drain hold
    """

    def __init__(
        self,
        client_id: int,
        config: LoadConfig,
        payload: Payload,
        metrics: Optional[LoadMetrics] = None,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client_id = client_id
        self.config = config
        self.payload = payload
        self.metrics = metrics
        self._clock = clock
        self._sleep = sleep

        self.state = SenderState.CONNECTING
        self.sent_count = 0
        self.start_ns: Optional[int] = None
        self._latencies_ns: List[int] = []
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

        self.log = ServiceLogger("paced_sender", client_id=client_id, target=config.target)

    def _transition(self, state: SenderState) -> None:
        self.log.debug("Sender state change", previous=self.state.value, state=state.value)
        self.state = state

    def elapsed_seconds(self) -> float:
        """Seconds since the first tick fired; 0.0 before any tick."""
        if self.start_ns is None:
            return 0.0
        return (self._clock() - self.start_ns) / 1e9

    async def connect(self) -> None:
        """Open the session's connection. No retry and no timeout."""
        try:
            self._reader, self._writer = await asyncio.open_connection(
                self.config.target_host, self.config.target_port
            )
        except OSError as e:
            raise SessionConnectError(self.client_id, 0, e) from e

        self.log = self.log.bind(local=str(self._writer.get_extra_info("sockname")))
        if self.metrics:
            self.metrics.session_opened()
        self.log.info("Client connected")

    async def run_load(self) -> float:
        """Send ``request_count`` messages, one per tick.

        Returns the elapsed seconds from the first tick to the last flush.
        Raises ``SessionSendError`` on the first failed write or flush.
        """
        if self._writer is None:
            raise RuntimeError("run_load() called before connect()")

        self._transition(SenderState.RUNNING)
        ticker = RateTicker(self.config.period_ns, clock=self._clock, sleep=self._sleep)
        data = self.payload.data

        while self.sent_count < self.config.request_count:
            fired_ns = await ticker.tick()
            if self.start_ns is None:
                self.start_ns = fired_ns

            write_start = self._clock()
            try:
                self._writer.write(data)
                await self._writer.drain()
            except OSError as e:
                raise SessionSendError(self.client_id, self.sent_count, e) from e
            write_ns = self._clock() - write_start

            self.sent_count += 1
            self._latencies_ns.append(write_ns)
            if self.metrics:
                self.metrics.record_send(self.client_id, len(data), write_ns / 1e9)

        return self.elapsed_seconds()

    async def drain(self, elapsed: float) -> None:
        """Report completion, then hold the idle connection open."""
        self._transition(SenderState.DRAINING)
        print(
            f"Client {self.client_id} successfully wrote {self.sent_count} "
            f"messages to connection in {elapsed:.6f}s",
            flush=True,
        )
        self.log.info(
            "Client finished sending",
            sent_count=self.sent_count,
            elapsed_seconds=elapsed,
            drain_seconds=self.config.drain_seconds,
        )
        await self._sleep(self.config.drain_seconds)

    async def close(self) -> None:
        """Close the connection if one was opened."""
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                self.log.debug("Connection closed with error", error=str(e))
            if self.metrics:
                self.metrics.session_closed()
        self._transition(SenderState.TERMINATED)

    def _outcome(self, status: SessionStatus, elapsed: float, error: Optional[str] = None) -> SessionOutcome:
        return SessionOutcome(
            client_id=self.client_id,
            status=status,
            sent_count=self.sent_count,
            elapsed_seconds=elapsed,
            bytes_sent=self.sent_count * len(self.payload),
            error=error,
            write_latency=summarize_latencies(self._latencies_ns),
        )

    async def run(self) -> SessionOutcome:
        """Run the whole session lifecycle and return its outcome."""
        try:
            await self.connect()
            elapsed = await self.run_load()
            await self.drain(elapsed)
            outcome = self._outcome(SessionStatus.COMPLETED, elapsed)
        except SessionError as e:
            status = (
                SessionStatus.CONNECT_FAILED
                if isinstance(e, SessionConnectError)
                else SessionStatus.SEND_FAILED
            )
            self.log.error(
                "Client session failed",
                status=status.value,
                sent_count=e.sent_count,
                error=str(e.cause),
            )
            outcome = self._outcome(status, self.elapsed_seconds(), error=str(e.cause))
        finally:
            await self.close()

        if self.metrics:
            self.metrics.record_session(outcome.status.value)
        return outcome
