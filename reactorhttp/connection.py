"""One TCP connection driven by an event loop, with buffered input and output."""

from __future__ import annotations

import enum
import logging
import socket
from typing import Any, Callable

from .buffer import Buffer, BufferOverflowError
from .eventloop import Channel, EventLoop

logger = logging.getLogger(__name__)

READ_CHUNK = 65535
WRITE_CHUNK = 65535

# Timer number reserved for the inactivity release; user timers start after it.
INACTIVE_TIMER = 1
FIRST_USER_TIMER = 2


class ConnectionState(enum.Enum):
    """Life-cycle stages of a connection."""

    DISCONNECTED = enum.auto()
    DISCONNECTING = enum.auto()
    CONNECTED = enum.auto()
    CONNECTING = enum.auto()


ConnectionCallback = Callable[["Connection"], None]
MessageCallback = Callable[["Connection", Buffer], None]


class Connection:
    """A socket bound to one loop; all state changes happen in that loop's thread.

    Callbacks are plain attributes: ``on_connect``, ``on_message`` (given the
    connection and its input buffer), ``on_any``, ``on_close`` and
    ``on_server_close``.
    """

    def __init__(self, loop: EventLoop, sock: socket.socket, conn_id: int) -> None:
        self.loop = loop
        self.socket = sock
        self.conn_id = conn_id
        self.context: Any = None
        self.input = Buffer()
        self.output = Buffer()
        self.on_connect: ConnectionCallback | None = None
        self.on_message: MessageCallback | None = None
        self.on_any: ConnectionCallback | None = None
        self.on_close: ConnectionCallback | None = None
        self.on_server_close: ConnectionCallback | None = None
        self._state = ConnectionState.CONNECTING
        self._timer_count = FIRST_USER_TIMER
        self._inactive_release = False
        sock.setblocking(False)
        self._channel = Channel(sock, loop)
        self._channel.read_callback = self._handle_read
        self._channel.write_callback = self._handle_write
        self._channel.close_callback = self._handle_close
        self._channel.error_callback = self._handle_error
        self._channel.any_callback = self._handle_any
        logger.debug("connection %d created", conn_id)

    @property
    def state(self) -> ConnectionState:
        """Current life-cycle stage."""
        return self._state

    def _timer_id(self, number: int) -> tuple[int, int]:
        return (self.conn_id, number)

    # Event handlers, always run in the loop thread.

    def _deliver_input(self) -> None:
        if len(self.input) and self.on_message is not None:
            self.on_message(self, self.input)

    def _handle_read(self) -> None:
        try:
            data = self.socket.recv(READ_CHUNK)
        except (BlockingIOError, InterruptedError):
            return
        except OSError as exc:
            logger.debug("connection %d read failed: %s", self.conn_id, exc)
            self._shutdown_in_loop()
            return
        if not data:
            self._shutdown_in_loop()
            return
        try:
            self.input.write(data)
        except BufferOverflowError as exc:
            logger.error("connection %d input overflow: %s", self.conn_id, exc)
            self.release()
            return
        if self.on_message is not None:
            self.on_message(self, self.input)

    def _handle_write(self) -> None:
        while len(self.output):
            chunk = self.output.peek(min(WRITE_CHUNK, len(self.output)))
            try:
                sent = self.socket.send(chunk)
            except (BlockingIOError, InterruptedError):
                return
            except OSError as exc:
                logger.debug("connection %d write failed: %s", self.conn_id, exc)
                self._deliver_input()
                self.release()
                return
            self.output.consume(sent)
        self._channel.disable_write()
        if self._state is ConnectionState.DISCONNECTING:
            self.release()

    def _handle_close(self) -> None:
        self._deliver_input()
        self.release()

    def _handle_error(self) -> None:
        self._deliver_input()
        self.release()

    def _handle_any(self) -> None:
        if self._inactive_release:
            self.loop.refresh_timer(self._timer_id(INACTIVE_TIMER))
        if self.on_any is not None:
            self.on_any(self)

    # Work run in the loop thread on behalf of the public methods.

    def _establish_in_loop(self) -> None:
        if self._state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"connection {self.conn_id} is already {self._state.name}")
        self._state = ConnectionState.CONNECTED
        self._channel.enable_read()
        if self.on_connect is not None:
            self.on_connect(self)

    def _send_in_loop(self, payload: bytes) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            logger.debug("send on released connection %d dropped", self.conn_id)
            return
        self.output.write(payload)
        if not self._channel.writable:
            self._channel.enable_write()

    def _shutdown_in_loop(self) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            return
        self._state = ConnectionState.DISCONNECTING
        self._deliver_input()
        if len(self.output):
            self._channel.enable_write()
        else:
            self.release()

    def _release_in_loop(self) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            return
        self._state = ConnectionState.DISCONNECTED
        logger.debug("connection %d released", self.conn_id)
        self._channel.remove()
        self.socket.close()
        if self._inactive_release:
            self.loop.cancel_timer(self._timer_id(INACTIVE_TIMER))
        for number in range(FIRST_USER_TIMER, self._timer_count):
            self.loop.cancel_timer(self._timer_id(number))
        if self.on_close is not None:
            self.on_close(self)
        if self.on_server_close is not None:
            self.on_server_close(self)

    def _enable_inactive_release_in_loop(self, seconds: int) -> None:
        self._inactive_release = True
        timer_id = self._timer_id(INACTIVE_TIMER)
        if self.loop.has_timer(timer_id):
            self.loop.refresh_timer(timer_id)
        else:
            self.loop.add_timer(timer_id, seconds, self.release)

    def _disable_inactive_release_in_loop(self) -> None:
        self._inactive_release = False
        timer_id = self._timer_id(INACTIVE_TIMER)
        if self.loop.has_timer(timer_id):
            self.loop.cancel_timer(timer_id)

    # Public interface, safe to call from any thread.

    def establish(self) -> None:
        """Start reading and report the new connection."""
        self.loop.run_in_loop(self._establish_in_loop)

    def send(self, data: bytes | bytearray | memoryview | str) -> None:
        """Queue ``data`` for sending; it goes out when the socket is writable."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        self.loop.run_in_loop(lambda: self._send_in_loop(payload))

    def shutdown(self) -> None:
        """Handle pending input, flush pending output, then release."""
        self.loop.run_in_loop(self._shutdown_in_loop)

    def release(self) -> None:
        """Close the connection after the loop's current round."""
        self.loop.queue_in_loop(self._release_in_loop)

    def enable_inactive_release(self, seconds: int) -> None:
        """Release the connection after ``seconds`` ticks without any event."""
        self.loop.run_in_loop(lambda: self._enable_inactive_release_in_loop(seconds))

    def disable_inactive_release(self) -> None:
        """Stop releasing the connection for inactivity."""
        self.loop.run_in_loop(self._disable_inactive_release_in_loop)

    def add_timer_task(self, delay: int, task: Callable[[], None]) -> int:
        """Run ``task`` after ``delay`` ticks; return the task's number."""
        number = self._timer_count
        self._timer_count += 1
        self.loop.add_timer(self._timer_id(number), delay, task)
        return number

    def cancel_timer_task(self, task_id: int) -> None:
        """Keep the timer task numbered ``task_id`` from running."""
        self.loop.cancel_timer(self._timer_id(task_id))