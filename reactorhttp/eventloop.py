"""Reactor core: channels, a selector-driven event loop and loop threads."""

from __future__ import annotations

import logging
import selectors
import socket
import threading
import time
from typing import Callable, Hashable

from .timewheel import DEFAULT_TIMEWHEEL_SIZE, TimeWheel

logger = logging.getLogger(__name__)

EVENT_READ = selectors.EVENT_READ
EVENT_WRITE = selectors.EVENT_WRITE
EVENT_HUP = 0x4
EVENT_ERROR = 0x8

# The timing wheel advances one slot per interval.
TICK_INTERVAL = 1.0

Callback = Callable[[], None]


class Channel:
    """Binds a file object to the events it watches and their callbacks."""

    def __init__(self, fileobj, loop: EventLoop) -> None:
        if loop is None:
            raise ValueError("a channel needs an event loop")
        self.fileobj = fileobj
        self.loop = loop
        self.events = EVENT_HUP | EVENT_ERROR
        self.read_callback: Callback | None = None
        self.write_callback: Callback | None = None
        self.close_callback: Callback | None = None
        self.error_callback: Callback | None = None
        self.any_callback: Callback | None = None

    @property
    def readable(self) -> bool:
        """True while read events are watched."""
        return bool(self.events & EVENT_READ)

    @property
    def writable(self) -> bool:
        """True while write events are watched."""
        return bool(self.events & EVENT_WRITE)

    def enable_read(self) -> None:
        """Start watching for read events."""
        self.events |= EVENT_READ
        self.loop._update_channel(self)

    def enable_write(self) -> None:
        """Start watching for write events."""
        self.events |= EVENT_WRITE
        self.loop._update_channel(self)

    def disable_read(self) -> None:
        """Stop watching for read events."""
        self.events &= ~EVENT_READ
        self.loop._update_channel(self)

    def disable_write(self) -> None:
        """Stop watching for write events."""
        self.events &= ~EVENT_WRITE
        self.loop._update_channel(self)

    def handle_event(self, events: int) -> None:
        """Dispatch the ready ``events`` to the matching callbacks."""
        if events & EVENT_HUP and self.close_callback is not None:
            self.close_callback()
            return
        if events & EVENT_ERROR and self.error_callback is not None:
            self.error_callback()
            return
        if events & EVENT_READ and self.read_callback is not None:
            self.read_callback()
        if events & EVENT_WRITE and self.write_callback is not None:
            self.write_callback()
        if self.any_callback is not None:
            self.any_callback()

    def remove(self) -> None:
        """Stop watching this channel altogether."""
        self.loop._remove_channel(self)


class EventLoop:
    """One reactor: waits for channel events, runs queued tasks, ticks timers."""

    def __init__(self, wheel_size: int = DEFAULT_TIMEWHEEL_SIZE) -> None:
        self._thread_id = threading.get_ident()
        self._selector = selectors.DefaultSelector()
        self._lock = threading.Lock()
        self._pending: list[Callback] = []
        self._wheel = TimeWheel(wheel_size)
        self._stop_requested = False
        self._wake_reader, self._wake_writer = socket.socketpair()
        self._wake_reader.setblocking(False)
        self._wake_writer.setblocking(False)
        self._wake_channel = Channel(self._wake_reader, self)
        self._wake_channel.read_callback = self._drain_wakeup
        self._wake_channel.enable_read()

    @property
    def in_loop_thread(self) -> bool:
        """True when called from the thread that owns this loop."""
        return threading.get_ident() == self._thread_id

    def _update_channel(self, channel: Channel) -> None:
        mask = channel.events & (EVENT_READ | EVENT_WRITE)
        try:
            self._selector.get_key(channel.fileobj)
            registered = True
        except KeyError:
            registered = False
        if not mask:
            if registered:
                self._selector.unregister(channel.fileobj)
        elif registered:
            self._selector.modify(channel.fileobj, mask, channel)
        else:
            self._selector.register(channel.fileobj, mask, channel)
        logger.debug("channel %r now watches %#x", channel.fileobj, mask)

    def _remove_channel(self, channel: Channel) -> None:
        try:
            self._selector.unregister(channel.fileobj)
        except KeyError:
            logger.debug("removal of unwatched channel %r", channel.fileobj)

    def _drain_wakeup(self) -> None:
        while True:
            try:
                if not self._wake_reader.recv(4096):
                    return
            except (BlockingIOError, InterruptedError):
                return

    def _wake(self) -> None:
        try:
            self._wake_writer.send(b"\x01")
        except (BlockingIOError, InterruptedError):
            pass

    def _run_pending(self) -> None:
        with self._lock:
            tasks, self._pending = self._pending, []
        for task in tasks:
            task()

    def run_in_loop(self, func: Callback) -> None:
        """Run ``func`` now if in the loop thread, otherwise queue it."""
        if self.in_loop_thread:
            func()
        else:
            self.queue_in_loop(func)

    def queue_in_loop(self, func: Callback) -> None:
        """Queue ``func`` to run after the loop's current round of events."""
        with self._lock:
            self._pending.append(func)
        self._wake()

    def start(self) -> None:
        """Run the loop in the calling thread until :meth:`stop` is called."""
        self._thread_id = threading.get_ident()
        logger.info("event loop started")
        next_tick = time.monotonic() + TICK_INTERVAL
        while not self._stop_requested:
            timeout = max(0.0, next_tick - time.monotonic())
            for key, mask in self._selector.select(timeout):
                key.data.handle_event(mask)
            now = time.monotonic()
            while now >= next_tick:
                self._wheel.tick()
                next_tick += TICK_INTERVAL
            self._run_pending()
        self._stop_requested = False
        logger.info("event loop stopped")

    def stop(self) -> None:
        """Ask the loop to leave :meth:`start` after its current round."""
        self._stop_requested = True
        self._wake()

    def _add_timer(self, timer_id: Hashable, delay: int, func: Callback) -> None:
        if timer_id in self._wheel:
            logger.warning("timer %r already exists", timer_id)
            return
        self._wheel.add(timer_id, delay, func)

    def add_timer(self, timer_id: Hashable, delay: int, func: Callback) -> None:
        """Run ``func`` after ``delay`` ticks unless refreshed or cancelled."""
        self.run_in_loop(lambda: self._add_timer(timer_id, delay, func))

    def refresh_timer(self, timer_id: Hashable) -> None:
        """Restart the countdown of a timer."""
        self.run_in_loop(lambda: self._wheel.refresh(timer_id))

    def cancel_timer(self, timer_id: Hashable) -> None:
        """Keep a timer from running."""
        self.run_in_loop(lambda: self._wheel.cancel(timer_id))

    def has_timer(self, timer_id: Hashable) -> bool:
        """True while the timer is still pending."""
        return timer_id in self._wheel


class LoopThread:
    """A thread that owns and runs its own event loop."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._loop: EventLoop | None = None
        self._thread = threading.Thread(target=self._run, name="event-loop", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        loop = EventLoop()
        with self._cond:
            self._loop = loop
            self._cond.notify_all()
        loop.start()

    @property
    def loop(self) -> EventLoop:
        """The thread's loop, waiting until it has been created."""
        with self._cond:
            self._cond.wait_for(lambda: self._loop is not None)
            return self._loop


class LoopThreadPool:
    """Hands out loops of worker threads in turn, or the base loop if none."""

    def __init__(self, base_loop: EventLoop, thread_count: int) -> None:
        self._base_loop = base_loop
        self._thread_count = thread_count
        self._threads: list[LoopThread] = []
        self._loops: list[EventLoop] = []
        self._next = 0

    @property
    def loops(self) -> tuple[EventLoop, ...]:
        """The worker loops created so far."""
        return tuple(self._loops)

    def create(self) -> None:
        """Start the worker threads."""
        if self._thread_count < 0:
            raise ValueError(f"negative thread count {self._thread_count}")
        self._threads = [LoopThread() for _ in range(self._thread_count)]
        self._loops = [thread.loop for thread in self._threads]
        self._next = 0

    def next_loop(self) -> EventLoop:
        """Return the loop that should take the next connection."""
        if self._thread_count == 0:
            return self._base_loop
        if not self._loops:
            raise RuntimeError("thread pool has not been created")
        self._next = (self._next + 1) % len(self._loops)
        return self._loops[self._next]