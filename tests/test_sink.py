"""Tests for the accept-and-discard listener."""

import asyncio

import pytest

from pacedload import sink
from pacedload.common.config import LoadGenSettings
from pacedload.sink import SinkServer


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_sink_counts_bytes_per_connection():
    """Test every connection's bytes are counted separately."""
    sink = SinkServer("127.0.0.1", 0)
    await sink.start()
    try:
        port = sink.bound_ports[0]
        for size in (10, 25):
            _, writer = await asyncio.open_connection("127.0.0.1", port)
            writer.write(b"x" * size)
            await writer.drain()
            writer.close()
            await writer.wait_closed()

        await _wait_for(lambda: sink.total_bytes == 35)
    finally:
        await sink.stop()

    assert sink.connections == 2
    assert sink.bytes_received == {0: 10, 1: 25}


@pytest.mark.asyncio
async def test_sink_echo_mode():
    """Test echo mode writes received bytes back."""
    sink = SinkServer("127.0.0.1", 0, echo=True)
    await sink.start()
    try:
        reader, writer = await asyncio.open_connection("127.0.0.1", sink.bound_ports[0])
        writer.write(b"ping")
        await writer.drain()
        assert await asyncio.wait_for(reader.readexactly(4), timeout=2) == b"ping"
        writer.close()
        await writer.wait_closed()
    finally:
        await sink.stop()


def test_main_rejects_invalid_environment(monkeypatch, capsys):
    """Test a malformed LOADGEN_ variable exits 1 before listening."""
    monkeypatch.setenv("LOADGEN_TARGET_PORT", "not-a-port")
    assert sink.main([]) == 1
    assert capsys.readouterr().err.startswith("Invalid LOADGEN_ settings")


def test_parse_args_rejects_out_of_range_port():
    """Test the bind port must be a valid TCP port."""
    with pytest.raises(SystemExit) as exc_info:
        sink.parse_args(LoadGenSettings(_env_file=None), ["--port", "70000"])
    assert exc_info.value.code == 2
