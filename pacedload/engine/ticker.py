"""Fixed-rate ticker driven by the monotonic nanosecond clock."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

# Lateness tolerated before the schedule restarts from the late tick.
MISSED_TICK_SLACK_NS = 5_000_000


class RateTicker:
    """Periodic timer for one session.

    The first ``tick()`` returns immediately. Later ticks wait for their
    deadline and never return early. A tick that is observed late (a slow
    write held up the caller) fires at once and the schedule restarts from
    that instant, so missed ticks are neither replayed in a burst nor
    skipped. Slow I/O lowers the realized rate; nothing raises it above
    one tick per period.

    Parameters
    - period_ns: Interval between ticks in nanoseconds, see
      ``LoadConfig.period_ns``
    - clock: Monotonic clock in nanoseconds
    - sleep: Coroutine function sleeping for a number of seconds
    """

    def __init__(
        self,
        period_ns: int,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if period_ns < 0:
            raise ValueError(f"period_ns must not be negative, got {period_ns}")
        self.period_ns = period_ns
        self._clock = clock
        self._sleep = sleep
        self._deadline: Optional[int] = None
        self.ticks = 0

    async def tick(self) -> int:
        """Wait for the next tick and return its fire time in nanoseconds."""
        now = self._clock()
        if self._deadline is None:
            self._deadline = now

        # The event loop may wake a timer up to its clock resolution early.
        while now < self._deadline:
            await self._sleep((self._deadline - now) / 1e9)
            now = self._clock()

        late_ns = now - self._deadline
        if late_ns > min(MISSED_TICK_SLACK_NS, self.period_ns):
            self._deadline = now + self.period_ns
        else:
            self._deadline += self.period_ns

        self.ticks += 1
        return now
