"""Capacity guard.

Every client runs its own event loop on its own thread. Running more clients
than the host can schedule in parallel makes ticks slip, so oversubscription
is rejected before any connection is attempted. The check is ``>=``: one
core stays reserved for the main thread and the OS.
"""

from typing import Optional

import psutil
import structlog

from ..common.errors import CapacityExceededError

logger = structlog.get_logger("capacity")


def available_parallelism() -> int:
    """Number of CPUs this process may run on.

    Honors the CPU affinity mask where the platform exposes one.
    """
    process = psutil.Process()
    if hasattr(process, "cpu_affinity"):
        cpus = process.cpu_affinity()
        if cpus:
            return len(cpus)
    return psutil.cpu_count(logical=True) or 1


def check_capacity(client_count: int, available: Optional[int] = None) -> int:
    """Reject ``client_count`` values that would oversubscribe the host.

    Parameters
    - client_count: Requested number of client sessions
    - available: Parallelism to check against; probed when omitted

    Returns the parallelism that was checked. Raises
    ``CapacityExceededError`` when ``client_count >= available``.
    """
    if available is None:
        available = available_parallelism()

    if client_count >= available:
        logger.warning(
            "Client count rejected",
            client_count=client_count,
            available_parallelism=available,
        )
        raise CapacityExceededError(client_count, available)

    logger.debug("Client count accepted", client_count=client_count, available_parallelism=available)
    return available
