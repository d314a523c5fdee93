"""A TCP server that sends each message back and then closes the connection."""

from __future__ import annotations

import argparse
import logging

from .buffer import Buffer
from .connection import Connection
from .tcpserver import TcpServer

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8100
DEFAULT_THREADS = 2
MAX_ECHO = 65535


class EchoServer:
    """Echoes what a client sends, then shuts the connection down."""

    def __init__(self, port: int = DEFAULT_PORT, thread_count: int = DEFAULT_THREADS) -> None:
        self._server = TcpServer(port, thread_count)
        self._server.on_connect = self._on_connect
        self._server.on_message = self._on_message
        self._server.on_close = self._on_close

    @property
    def port(self) -> int:
        """The port the server listens on."""
        return self._server.port

    @staticmethod
    def _on_message(conn: Connection, buf: Buffer) -> None:
        size = min(len(buf), MAX_ECHO)
        data = buf.peek(size)
        buf.consume(size)
        conn.send(data)
        conn.shutdown()

    @staticmethod
    def _on_connect(conn: Connection) -> None:
        logger.info("new connection %d", conn.conn_id)

    @staticmethod
    def _on_close(conn: Connection) -> None:
        logger.info("connection %d closed", conn.conn_id)

    def start(self) -> None:
        """Serve in the calling thread until stopped."""
        self._server.start()

    def stop(self) -> None:
        """Stop serving."""
        self._server.stop()


def main(argv: list[str] | None = None) -> int:
    """Run an echo server from the command line."""
    parser = argparse.ArgumentParser(description="Echo every message back to its sender.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--threads", type=int, default=DEFAULT_THREADS)
    args = parser.parse_args(argv)
    server = EchoServer(args.port, args.threads)
    try:
        server.start()
    except KeyboardInterrupt:
        server.stop()
    return 0