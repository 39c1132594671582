"""Session outcome and run report types."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SessionStatus(Enum):
    """How a client session ended."""
    COMPLETED = "completed"
    CONNECT_FAILED = "connect_failed"
    SEND_FAILED = "send_failed"
    CRASHED = "crashed"


@dataclass(frozen=True)
class SessionOutcome:
    """Result of one client session.

    ``elapsed_seconds`` spans the first tick to completion (or failure) and is
    0.0 when no tick fired. ``write_latency`` holds summary statistics in
    milliseconds, empty when nothing was written.
    """
    client_id: int
    status: SessionStatus
    sent_count: int = 0
    elapsed_seconds: float = 0.0
    bytes_sent: int = 0
    error: Optional[str] = None
    write_latency: Dict[str, float] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status is SessionStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class RunReport:
    """Outcomes of every session in a run, ordered by client id."""
    outcomes: List[SessionOutcome]
    wall_seconds: float

    @property
    def total_sent(self) -> int:
        return sum(o.sent_count for o in self.outcomes)

    @property
    def completed(self) -> List[SessionOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> List[SessionOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wall_seconds": self.wall_seconds,
            "total_sent": self.total_sent,
            "completed": len(self.completed),
            "failed": len(self.failed),
            "sessions": [o.to_dict() for o in self.outcomes],
        }
