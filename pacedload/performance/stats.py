"""Summary statistics for load runs."""

from typing import Any, Dict, Sequence

import numpy as np

from ..engine.outcome import RunReport


def summarize_latencies(latencies_ns: Sequence[int]) -> Dict[str, float]:
    """Summarize per-write latencies.

    Parameters
    - latencies_ns: Write plus flush durations in nanoseconds

    Returns mean/median/p95/p99/min/max in milliseconds, or an empty dict
    when nothing was written.
    """
    if len(latencies_ns) == 0:
        return {}

    values = np.asarray(latencies_ns, dtype=np.float64) / 1e6
    return {
        "count": int(values.size),
        "mean_ms": float(np.mean(values)),
        "median_ms": float(np.median(values)),
        "p95_ms": float(np.percentile(values, 95)),
        "p99_ms": float(np.percentile(values, 99)),
        "min_ms": float(np.min(values)),
        "max_ms": float(np.max(values)),
    }


def realized_rate(sent_count: int, elapsed_seconds: float) -> float:
    """Messages per second actually achieved over the send window.

    ``n`` sends span ``n - 1`` tick periods, so the first send is not
    counted against the window.
    """
    if sent_count < 2 or elapsed_seconds <= 0:
        return 0.0
    return (sent_count - 1) / elapsed_seconds


def summarize_run(report: RunReport) -> Dict[str, Any]:
    """Aggregate throughput figures across all sessions of a run."""
    completed = report.completed
    rates = [realized_rate(o.sent_count, o.elapsed_seconds) for o in completed]
    elapsed = [o.elapsed_seconds for o in completed]

    return {
        "sessions": len(report.outcomes),
        "completed": len(completed),
        "failed": len(report.failed),
        "total_sent": report.total_sent,
        "total_bytes": sum(o.bytes_sent for o in report.outcomes),
        "wall_seconds": report.wall_seconds,
        "mean_session_rate": float(np.mean(rates)) if rates else 0.0,
        "aggregate_rate": float(np.sum(rates)) if rates else 0.0,
        "max_elapsed_seconds": float(np.max(elapsed)) if elapsed else 0.0,
    }
