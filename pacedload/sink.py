#!/usr/bin/env python3
"""Accept-and-discard TCP listener for local load runs.

Stands in for the real target on ``localhost:8006``. Every connection is read
until EOF; bytes are discarded, or echoed back with ``--echo``. Per-connection
byte totals are logged when the peer disconnects.
"""

import argparse
import asyncio
import sys
from typing import Dict, List, Optional

import structlog

from .cli import port_number
from .common.config import DEFAULT_TARGET_PORT, LoadGenSettings, load_settings
from .common.errors import ConfigurationError
from .common.logging import configure_logging

logger = structlog.get_logger("sink")

READ_CHUNK = 65536


class SinkServer:
    """Asyncio listener that counts bytes per connection.

    Parameters
    - host / port: Bind address; port 0 picks a free port
    - echo: Write every chunk back to the peer
    """

    def __init__(self, host: str = "localhost", port: int = DEFAULT_TARGET_PORT, echo: bool = False):
        self.host = host
        self.port = port
        self.echo = echo
        self.connections = 0
        self.bytes_received: Dict[int, int] = {}
        self._server: Optional[asyncio.AbstractServer] = None

    @property
    def total_bytes(self) -> int:
        return sum(self.bytes_received.values())

    @property
    def bound_ports(self) -> List[int]:
        if self._server is None:
            return []
        return [sock.getsockname()[1] for sock in self._server.sockets]

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        connection_id = self.connections
        self.connections += 1
        self.bytes_received[connection_id] = 0
        peer = writer.get_extra_info("peername")
        logger.info("Connection accepted", connection_id=connection_id, peer=str(peer))

        try:
            while True:
                chunk = await reader.read(READ_CHUNK)
                if not chunk:
                    break
                self.bytes_received[connection_id] += len(chunk)
                if self.echo:
                    writer.write(chunk)
                    await writer.drain()
        except ConnectionError as e:
            logger.warning("Connection dropped", connection_id=connection_id, error=str(e))
        finally:
            writer.close()
            logger.info(
                "Connection closed",
                connection_id=connection_id,
                bytes_received=self.bytes_received[connection_id],
            )

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, self.host, self.port)
        logger.info("Sink listening", host=self.host, ports=self.bound_ports, echo=self.echo)

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def serve_forever(self) -> None:
        await self.start()
        async with self._server:
            await self._server.serve_forever()


def parse_args(settings: LoadGenSettings, argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Accept-and-discard TCP listener for pacedload")
    parser.add_argument("--host", default=settings.target_host, help="Bind address")
    parser.add_argument("--port", type=port_number, default=settings.target_port, help="Bind port")
    parser.add_argument("--echo", action="store_true", help="Echo received bytes back")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument("--log-format", default=settings.log_format, choices=["console", "json"])
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 1
    args = parse_args(settings, argv)
    configure_logging("pacedload-sink", args.log_level, args.log_format)

    server = SinkServer(args.host, args.port, echo=args.echo)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        logger.info("Sink stopped", connections=server.connections, total_bytes=server.total_bytes)
    except OSError as e:
        print(f"Cannot listen on {args.host}:{args.port}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
