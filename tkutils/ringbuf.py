"""A fixed-size byte ring buffer that refuses to overwrite unread data."""

from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

MAX_SIZE = 0xFFFF


class RingBuffer:
    """Byte FIFO over ``size`` bytes of storage; one slot stays unused,
    so at most ``size - 1`` bytes are held at once."""

    def __init__(self, size: int) -> None:
        if not 0 < size <= MAX_SIZE:
            raise ValueError(f"size must be between 1 and {MAX_SIZE}")
        self._size = size
        self._buf = bytearray(size)
        self._in = 0
        self._out = 0

    @property
    def size(self) -> int:
        """Length of the underlying storage."""
        return self._size

    def reset(self) -> None:
        """Discard all buffered data."""
        self._in = 0
        self._out = 0

    def free_size(self) -> int:
        """Number of bytes that can still be written."""
        return self._size - 1 - self.used_size()

    def used_size(self) -> int:
        """Number of bytes waiting to be read."""
        if self._in >= self._out:
            return self._in - self._out
        return self._size - (self._out - self._in)

    def write(self, data: BytesLike) -> int:
        """Append as much of ``data`` as fits; return the number of bytes written."""
        chunk = bytes(data)[: self.free_size()]
        n = len(chunk)
        if n == 0:
            return 0
        first = min(self._size - self._in, n)
        self._buf[self._in:self._in + first] = chunk[:first]
        rest = n - first
        if rest:
            self._buf[:rest] = chunk[first:]
            self._in = rest
        else:
            self._in += first
        if self._in >= self._size:
            self._in = 0
        return n

    def _copy_out(self, size: int) -> bytes:
        if size < 0:
            raise ValueError("size must not be negative")
        n = min(size, self.used_size())
        first = min(self._size - self._out, n)
        return bytes(self._buf[self._out:self._out + first] + self._buf[: n - first])

    def read(self, size: int) -> bytes:
        """Remove and return up to ``size`` bytes."""
        data = self._copy_out(size)
        self._out = (self._out + len(data)) % self._size
        return data

    def peek(self, size: int) -> bytes:
        """Return up to ``size`` bytes without consuming them."""
        return self._copy_out(size)