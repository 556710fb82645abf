"""A string-keyed hash map that keeps every value put under the same key."""

from __future__ import annotations

import zlib
from typing import Any, Iterator, Union

_U32 = 0xFFFFFFFF

Key = Union[str, bytes, bytearray]


def _key_bytes(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise TypeError(f"key must be str or bytes, not {type(key).__name__}")


def crc32_hashmap(data: Union[bytes, bytearray, memoryview]) -> int:
    """CRC-32 (polynomial 0xEDB88320) with a zero start value and no final inversion."""
    # zlib inverts both the start value and the result; undo both.
    return zlib.crc32(bytes(data), _U32) ^ _U32


def bucket_index(key: Key, table_size: int) -> int:
    """Map ``key`` to a bucket in a table of ``table_size`` slots."""
    if table_size <= 0:
        raise ValueError("table_size must be positive")
    h = crc32_hashmap(_key_bytes(key))

    # 32-bit integer mix
    h = (h + (h << 12)) & _U32
    h ^= h >> 22
    h = (h + (h << 4)) & _U32
    h ^= h >> 9
    h = (h + (h << 10)) & _U32
    h ^= h >> 2
    h = (h + (h << 7)) & _U32
    h ^= h >> 12

    # multiplicative scrambling
    h = ((h >> 3) * 2654435761) & _U32
    return h % table_size


class MultiHashMap:
    """Hash map with a fixed number of buckets.

    Putting a key that is already present does not replace the old value:
    the new entry is placed in front of it, so :meth:`get` returns the most
    recently added value and :meth:`values` yields all of them, newest first.
    """

    def __init__(self, table_size: int) -> None:
        if table_size <= 0:
            raise ValueError("table_size must be positive")
        self._table_size = table_size
        self._buckets: list[list[tuple[bytes, Any]]] = [[] for _ in range(table_size)]
        self._size = 0

    @property
    def table_size(self) -> int:
        """Number of buckets."""
        return self._table_size

    def _bucket(self, key: bytes) -> list[tuple[bytes, Any]]:
        return self._buckets[bucket_index(key, self._table_size)]

    def put(self, key: Key, data: Any) -> None:
        """Add ``data`` under ``key``, ahead of any value already stored there."""
        raw = _key_bytes(key)
        self._bucket(raw).insert(0, (raw, data))
        self._size += 1

    def get(self, key: Key) -> Any:
        """Return the most recently added value for ``key``.

        Raises KeyError if the key is not present.
        """
        raw = _key_bytes(key)
        for stored, data in self._bucket(raw):
            if stored == raw:
                return data
        raise KeyError(key)

    def values(self, key: Key) -> Iterator[Any]:
        """Yield every value stored under ``key``, newest first."""
        raw = _key_bytes(key)
        for stored, data in list(self._bucket(raw)):
            if stored == raw:
                yield data

    def remove(self, key: Key, data: Any = None) -> None:
        """Remove one entry for ``key``.

        With ``data`` None the most recently added entry goes; otherwise the
        newest entry whose value is ``data``. Raises KeyError if none matches.
        """
        raw = _key_bytes(key)
        bucket = self._bucket(raw)
        for pos, (stored, value) in enumerate(bucket):
            if stored != raw:
                continue
            if data is None or value is data or value == data:
                del bucket[pos]
                self._size -= 1
                return
        raise KeyError(key)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (str, bytes, bytearray)):
            return False
        raw = _key_bytes(key)
        return any(stored == raw for stored, _ in self._bucket(raw))

    def __repr__(self) -> str:
        return f"MultiHashMap(table_size={self._table_size}, size={self._size})"