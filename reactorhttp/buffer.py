"""Growable byte buffer used for connection input and output."""

from __future__ import annotations

DEFAULT_BUFFER_SIZE = 1024
MAX_BUFFER_SIZE = 1000000


class BufferOverflowError(Exception):
    """Raised when a write would grow the buffer past its limit."""


class Buffer:
    """FIFO byte buffer whose capacity doubles on demand up to a limit."""

    def __init__(self, size: int = DEFAULT_BUFFER_SIZE) -> None:
        if size <= 0:
            raise ValueError("buffer size must be positive")
        self._capacity = size
        self._data = bytearray()

    def __len__(self) -> int:
        return len(self._data)

    def _reserve(self, extra: int) -> None:
        needed = len(self._data) + extra
        capacity = self._capacity
        while capacity < needed:
            if capacity * 2 > MAX_BUFFER_SIZE:
                raise BufferOverflowError(
                    f"buffer cannot hold {needed} bytes (limit {MAX_BUFFER_SIZE})"
                )
            capacity *= 2
        self._capacity = capacity

    def write(self, data: bytes | bytearray | memoryview | str | Buffer) -> None:
        """Append ``data``; another Buffer is copied without being consumed."""
        if isinstance(data, Buffer):
            chunk = bytes(data._data)
        elif isinstance(data, str):
            chunk = data.encode("utf-8")
        else:
            chunk = bytes(data)
        self._reserve(len(chunk))
        self._data += chunk

    def peek(self, length: int | None = None) -> bytes:
        """Return the first ``length`` readable bytes (all if None) without consuming."""
        if length is None:
            return bytes(self._data)
        if length < 0 or length > len(self._data):
            raise ValueError(f"cannot peek {length} bytes from {len(self._data)}")
        return bytes(self._data[:length])

    def peek_line(self) -> bytes | None:
        """Return the first line including its newline, or None if incomplete."""
        end = self._data.find(b"\n")
        if end < 0:
            return None
        return bytes(self._data[: end + 1])

    def consume(self, length: int) -> None:
        """Drop ``length`` bytes from the front."""
        if length < 0 or length > len(self._data):
            raise ValueError(f"cannot consume {length} bytes from {len(self._data)}")
        del self._data[:length]

    def clear(self) -> None:
        """Discard all readable data."""
        self._data.clear()