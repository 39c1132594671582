"""Process resource profiling during a load run.

``SystemProfiler`` samples the current process with ``psutil`` from a
background thread and keeps a bounded history, so a run can report how much
CPU the client threads used and whether the host kept up with the pacing.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import psutil
import structlog

logger = structlog.get_logger("profiler")


@dataclass
class ResourceSample:
    """One sample of process resource usage."""
    timestamp: float
    cpu_percent: float
    memory_mb: float
    threads: int
    network_sent_mb: float


class SystemProfiler:
    """Samples process resource usage at a fixed interval.

    Parameters
    - interval: Seconds between samples
    - max_samples: History bound; older samples are dropped
    """

    def __init__(self, interval: float = 1.0, max_samples: int = 1000):
        self.interval = interval
        self.max_samples = max_samples
        self.samples: deque = deque(maxlen=max_samples)
        self.process = psutil.Process()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_profiling(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start sampling in a daemon thread."""
        if self.is_profiling:
            return

        self._stop.clear()
        # Prime cpu_percent; the first call always reports 0.0.
        self.process.cpu_percent()
        self._thread = threading.Thread(target=self._sample_loop, name="profiler", daemon=True)
        self._thread.start()

        logger.info("System profiling started", interval=self.interval)

    def stop(self) -> None:
        """Stop sampling and take one final sample."""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        self.samples.append(self._collect())

        logger.info("System profiling stopped", samples_collected=len(self.samples))

    def _sample_loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.samples.append(self._collect())
            except psutil.Error as e:
                logger.error("Error collecting resource sample", error=str(e))

    def _collect(self) -> ResourceSample:
        memory_info = self.process.memory_info()
        net_io = psutil.net_io_counters()
        return ResourceSample(
            timestamp=time.time(),
            cpu_percent=self.process.cpu_percent(),
            memory_mb=memory_info.rss / 1024 / 1024,
            threads=self.process.num_threads(),
            network_sent_mb=(net_io.bytes_sent / 1024 / 1024) if net_io else 0.0,
        )

    def get_summary_stats(self) -> Dict[str, Any]:
        """Summary statistics over the collected samples."""
        if not self.samples:
            return {}

        samples: List[ResourceSample] = list(self.samples)

        def calc_stats(values):
            return {
                "mean": float(np.mean(values)),
                "p95": float(np.percentile(values, 95)),
                "max": float(np.max(values)),
            }

        return {
            "sample_count": len(samples),
            "duration_seconds": samples[-1].timestamp - samples[0].timestamp,
            "cpu_percent": calc_stats([s.cpu_percent for s in samples]),
            "memory_mb": calc_stats([s.memory_mb for s in samples]),
            "threads": calc_stats([s.threads for s in samples]),
            "network_sent_mb": samples[-1].network_sent_mb - samples[0].network_sent_mb,
        }
