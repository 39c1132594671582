"""Tests for the client supervisor."""

import asyncio
import threading

import pytest

from pacedload.common.config import LoadConfig
from pacedload.common.metrics import LoadMetrics
from pacedload.common.payload import Payload
from pacedload.engine.outcome import SessionStatus
from pacedload.engine.sender import PacedSender
from pacedload.engine.supervisor import ClientSupervisor

PAYLOAD = Payload(b"supervised-payload")


def make_config(port: int, client_count: int, request_count: int = 4, rate: int = 100,
                drain_seconds: float = 0) -> LoadConfig:
    return LoadConfig(
        client_count=client_count,
        request_count=request_count,
        rate=rate,
        target_host="127.0.0.1",
        target_port=port,
        drain_seconds=drain_seconds,
    )


def test_every_client_completes(tcp_sink):
    """Test all clients connect, send their full count and are reported in id order."""
    metrics = LoadMetrics()
    report = ClientSupervisor(make_config(tcp_sink.port, 3), PAYLOAD, metrics=metrics).run()

    assert [o.client_id for o in report.outcomes] == [0, 1, 2]
    assert all(o.status is SessionStatus.COMPLETED for o in report.outcomes)
    assert [o.sent_count for o in report.outcomes] == [4, 4, 4]
    assert report.total_sent == 12
    assert report.failed == []

    received = tcp_sink.wait_for_connections(3)
    assert sorted(received) == [PAYLOAD.data * 4] * 3
    assert 'loadgen_sessions_total{status="completed"} 3.0' in metrics.get_metrics()
    assert "loadgen_active_sessions 0.0" in metrics.get_metrics()


def test_each_client_runs_on_its_own_thread_and_loop(tcp_sink):
    """Test sessions share neither a thread nor an event loop."""
    seen = []
    lock = threading.Lock()

    class RecordingSender(PacedSender):
        async def run(self):
            with lock:
                seen.append((threading.get_ident(), asyncio.get_running_loop()))
            return await super().run()

    def factory(client_id, config, payload, metrics):
        return RecordingSender(client_id, config, payload, metrics=metrics)

    ClientSupervisor(make_config(tcp_sink.port, 3, request_count=2), PAYLOAD, sender_factory=factory).run()

    assert len(seen) == 3
    assert len({thread for thread, _ in seen}) == 3
    assert len({id(loop) for _, loop in seen}) == 3


def test_connect_failure_is_isolated(tcp_sink, closed_port):
    """Test a failing client 2 of 5 leaves the other four untouched."""

    def factory(client_id, config, payload, metrics):
        if client_id == 2:
            config = config.model_copy(update={"target_port": closed_port})
        return PacedSender(client_id, config, payload, metrics=metrics)

    config = make_config(tcp_sink.port, 5, request_count=5, rate=50)
    report = ClientSupervisor(config, PAYLOAD, sender_factory=factory).run()

    by_id = {o.client_id: o for o in report.outcomes}
    assert by_id[2].status is SessionStatus.CONNECT_FAILED
    assert by_id[2].sent_count == 0
    for client_id in (0, 1, 3, 4):
        assert by_id[client_id].status is SessionStatus.COMPLETED
        assert by_id[client_id].sent_count == 5
        assert by_id[client_id].elapsed_seconds >= 4 / 50
    assert [o.client_id for o in report.failed] == [2]
    assert report.total_sent == 20


def test_crashed_client_is_collected(tcp_sink):
    """Test an unexpected exception in one thread becomes a crashed outcome."""

    def factory(client_id, config, payload, metrics):
        if client_id == 1:
            raise RuntimeError("sender construction failed")
        return PacedSender(client_id, config, payload, metrics=metrics)

    metrics = LoadMetrics()
    report = ClientSupervisor(make_config(tcp_sink.port, 3), PAYLOAD, metrics=metrics,
                              sender_factory=factory).run()

    assert report.outcomes[1].status is SessionStatus.CRASHED
    assert "sender construction failed" in report.outcomes[1].error
    assert report.outcomes[0].succeeded and report.outcomes[2].succeeded
    assert 'loadgen_sessions_total{status="crashed"} 1.0' in metrics.get_metrics()


@pytest.mark.integration
def test_drain_periods_overlap(tcp_sink):
    """Test the supervisor joins after the drains, which run in parallel."""
    report = ClientSupervisor(
        make_config(tcp_sink.port, 2, request_count=0, drain_seconds=0.5), PAYLOAD
    ).run()

    assert all(o.succeeded for o in report.outcomes)
    assert report.wall_seconds >= 0.5
    assert report.wall_seconds < 0.95
