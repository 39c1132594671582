"""Shared fixtures for the load generator tests."""

import socket
import socketserver
import sys
import threading

import pytest

from pacedload.common.logging import configure_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    """Route structured logs to stderr at WARNING for every test."""
    configure_logging("tests", "WARNING", "console", stream=sys.stderr)
    yield


class _CollectingHandler(socketserver.BaseRequestHandler):
    """Reads one connection to EOF and stores everything it received."""

    def handle(self):
        chunks = []
        while True:
            data = self.request.recv(65536)
            if not data:
                break
            chunks.append(data)
        with self.server.lock:
            self.server.received.append(b"".join(chunks))
            self.server.closed.notify_all()


class CollectingTCPServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self):
        super().__init__(("127.0.0.1", 0), _CollectingHandler)
        self.received = []
        self.lock = threading.Lock()
        self.closed = threading.Condition(self.lock)

    @property
    def port(self) -> int:
        return self.server_address[1]

    def wait_for_connections(self, count: int, timeout: float = 5.0) -> list:
        """Block until ``count`` connections have been read to EOF."""
        with self.closed:
            self.closed.wait_for(lambda: len(self.received) >= count, timeout=timeout)
            return list(self.received)


@pytest.fixture
def tcp_sink():
    """Threaded loopback listener collecting the bytes of every connection."""
    server = CollectingTCPServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def closed_port():
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
