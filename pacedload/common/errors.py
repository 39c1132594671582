"""Exception hierarchy for the load generator.

Two families exist:
- ``ConfigurationError`` is raised synchronously before any network I/O and
  aborts the whole run.
- ``SessionError`` is raised inside a single client session. It never
  crosses the session boundary: the sender turns it into a failed outcome.
"""

from typing import Optional


class LoadGenError(Exception):
    """Base class for all load generator errors."""
    pass


class ConfigurationError(LoadGenError):
    """Invalid run parameters detected before any connection attempt."""
    pass


class CapacityExceededError(ConfigurationError):
    """Requested client count does not fit the host's parallelism."""

    def __init__(self, client_count: int, available: int):
        self.client_count = client_count
        self.available = available
        super().__init__(
            f"Client count {client_count} exceeds number of available cores: {available}"
        )


class PayloadDecodeError(ConfigurationError):
    """Payload source could not be turned into a byte buffer."""
    pass


class SessionError(LoadGenError):
    """Fatal failure inside one client session.

    Carries the session's progress at the time of failure so the supervisor
    can report it.
    """

    def __init__(self, client_id: int, sent_count: int, cause: Optional[BaseException] = None):
        self.client_id = client_id
        self.sent_count = sent_count
        self.cause = cause
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"client {self.client_id} failed after {self.sent_count} messages: {self.cause}"


class SessionConnectError(SessionError):
    """Connecting to the target failed."""

    def _describe(self) -> str:
        return f"client {self.client_id} could not connect: {self.cause}"


class SessionSendError(SessionError):
    """A write or flush failed while the session was running."""
    pass
