"""Metrics collection for load runs.

Provides a thin convenience wrapper around ``prometheus_client`` so the
engine records sends and session outcomes with consistent label sets.

Design notes
- One registry per run; tests inject their own to stay isolated
- prometheus_client collectors are thread-safe, so client threads record
  directly. Metrics are never read back to decide when a run is finished.
"""

from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    start_http_server,
)
import structlog

logger = structlog.get_logger("metrics")


class LoadMetrics:
    """Prometheus collectors for one load run.

    Parameters
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()

        self.messages_sent = Counter(
            'loadgen_messages_sent_total',
            'Messages written and flushed to the target',
            ['client_id'],
            registry=self.registry
        )

        self.bytes_sent = Counter(
            'loadgen_bytes_sent_total',
            'Payload bytes written to the target',
            ['client_id'],
            registry=self.registry
        )

        self.write_duration = Histogram(
            'loadgen_write_duration_seconds',
            'Duration of one write plus flush',
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self.registry
        )

        self.sessions = Counter(
            'loadgen_sessions_total',
            'Finished client sessions partitioned by outcome',
            ['status'],
            registry=self.registry
        )

        self.active_sessions = Gauge(
            'loadgen_active_sessions',
            'Client sessions currently connected',
            registry=self.registry
        )

    def record_send(self, client_id: int, size_bytes: int, duration_seconds: float) -> None:
        """Record one successful tick."""
        label = str(client_id)
        self.messages_sent.labels(client_id=label).inc()
        self.bytes_sent.labels(client_id=label).inc(size_bytes)
        self.write_duration.observe(duration_seconds)

    def record_session(self, status: str) -> None:
        self.sessions.labels(status=status).inc()

    def session_opened(self) -> None:
        self.active_sessions.inc()

    def session_closed(self) -> None:
        self.active_sessions.dec()

    def get_metrics(self) -> str:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry).decode("utf-8")

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose the registry over HTTP from a daemon thread."""
        start_http_server(port, addr=addr, registry=self.registry)
        logger.info("Metrics endpoint started", port=port, addr=addr)
