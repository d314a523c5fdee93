"""Listening socket and a multi-loop TCP server built on it."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from .buffer import Buffer
from .connection import Connection
from .eventloop import Channel, EventLoop, LoopThreadPool

logger = logging.getLogger(__name__)

BACKLOG = 10
DEFAULT_RELEASE_TIME = 60


class Acceptor:
    """Listens on a port and hands every accepted socket to ``on_accept``."""

    def __init__(
        self, loop: EventLoop, port: int, on_accept: Callable[[socket.socket], None]
    ) -> None:
        self.loop = loop
        self.on_accept = on_accept
        self._sock = self._create_server(port)
        self._closed = False
        self._channel = Channel(self._sock, loop)
        self._channel.read_callback = self._handle_read
        self._channel.enable_read()
        logger.info("listening on port %d", self.port)

    @staticmethod
    def _create_server(port: int) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if hasattr(socket, "SO_REUSEPORT"):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            sock.bind(("", port))
            sock.listen(BACKLOG)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    @property
    def port(self) -> int:
        """The port actually bound."""
        return self._sock.getsockname()[1]

    def _handle_read(self) -> None:
        try:
            conn, (ip, port) = self._sock.accept()
        except (BlockingIOError, InterruptedError):
            return
        except OSError as exc:
            logger.warning("accept failed: %s", exc)
            return
        logger.debug("accepted connection from %s:%d", ip, port)
        self.on_accept(conn)

    def close(self) -> None:
        """Stop listening."""
        if self._closed:
            return
        self._closed = True
        self._channel.remove()
        self._sock.close()


class TcpServer:
    """Accepts on a base loop and spreads connections over worker loops.

    Callbacks given to every new connection are plain attributes:
    ``on_connect``, ``on_message``, ``on_any`` and ``on_close``.
    """

    def __init__(self, port: int, thread_count: int) -> None:
        self._base_loop = EventLoop()
        self._acceptor = Acceptor(self._base_loop, port, self._handle_accept)
        self._pool = LoopThreadPool(self._base_loop, thread_count)
        self._inactive_release = False
        self._release_time = DEFAULT_RELEASE_TIME
        self._next_conn_id = 1
        self._connections: dict[int, Connection] = {}
        self._lock = threading.Lock()
        self.on_connect: Callable[[Connection], None] | None = None
        self.on_message: Callable[[Connection, Buffer], None] | None = None
        self.on_any: Callable[[Connection], None] | None = None
        self.on_close: Callable[[Connection], None] | None = None

    @property
    def port(self) -> int:
        """The port the server listens on."""
        return self._acceptor.port

    @property
    def connections(self) -> tuple[Connection, ...]:
        """The connections currently open."""
        with self._lock:
            return tuple(self._connections.values())

    def _handle_accept(self, sock: socket.socket) -> None:
        conn = Connection(self._pool.next_loop(), sock, self._next_conn_id)
        self._next_conn_id += 1
        with self._lock:
            self._connections[conn.conn_id] = conn
        if self._inactive_release:
            conn.enable_inactive_release(self._release_time)
        conn.on_connect = self.on_connect
        conn.on_message = self.on_message
        conn.on_any = self.on_any
        conn.on_close = self.on_close
        conn.on_server_close = self._erase_connection
        conn.establish()

    def _erase_connection(self, conn: Connection) -> None:
        def erase() -> None:
            with self._lock:
                self._connections.pop(conn.conn_id, None)

        self._base_loop.run_in_loop(erase)

    def enable_inactive_release(self, seconds: int = DEFAULT_RELEASE_TIME) -> None:
        """Release connections idle for ``seconds`` seconds."""
        self._inactive_release = True
        self._release_time = seconds

    def start(self) -> None:
        """Start the worker loops and run the base loop until stopped."""
        try:
            self._pool.create()
            self._base_loop.start()
        finally:
            self._acceptor.close()

    def stop(self) -> None:
        """Stop the base loop and every worker loop."""
        for loop in self._pool.loops:
            loop.stop()
        self._base_loop.stop()