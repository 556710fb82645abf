"""A thread-safe bounded FIFO queue that can also push items to its front."""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Callable, Deque, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class QueueFullError(Exception):
    """Raised when an item is added to a queue that has no free slot."""


class QueueEmptyError(LookupError):
    """Raised when the queue does not hold the items asked for."""


class BoundedQueue(Generic[T]):
    """FIFO holding at most ``max_items`` items.

    Items added with :meth:`put` go to the back; items added with
    :meth:`put_front` jump the line and are taken out first.
    """

    def __init__(self, max_items: int) -> None:
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        self._max = max_items
        self._items: Deque[T] = deque()
        self._lock = threading.Lock()

    def _enqueue(self, item: T, front: bool) -> None:
        with self._lock:
            if len(self._items) >= self._max:
                raise QueueFullError(f"queue is full ({self._max} items)")
            if front:
                self._items.appendleft(item)
            else:
                self._items.append(item)

    def put(self, item: T) -> None:
        """Append ``item`` at the back; raise QueueFullError when full."""
        self._enqueue(item, front=False)

    def put_front(self, item: T) -> None:
        """Insert ``item`` at the front so it is taken out next."""
        self._enqueue(item, front=True)

    def get(self) -> T:
        """Remove and return the item at the front."""
        with self._lock:
            if not self._items:
                raise QueueEmptyError("queue is empty")
            return self._items.popleft()

    def discard(self) -> None:
        """Remove the item at the front without returning it."""
        self.get()

    def peek(self) -> T:
        """Return the item at the front without removing it."""
        with self._lock:
            if not self._items:
                raise QueueEmptyError("queue is empty")
            return self._items[0]

    def traverse(self, callback: Callable[[T, Any], bool], ctx: Any = None) -> None:
        """Call ``callback(item, ctx)`` front to back until it returns a false value."""
        if callback is None:
            raise ValueError("callback is required")
        with self._lock:
            snapshot = list(self._items)
        for item in snapshot:
            if not callback(item, ctx):
                break

    def clear(self) -> None:
        """Remove every item."""
        with self._lock:
            self._items.clear()

    def get_batch(self, start: int, num: int) -> list[T]:
        """Return ``num`` items beginning at position ``start`` without removing them.

        Raises QueueEmptyError if the queue does not hold that many items there.
        """
        if num <= 0:
            raise ValueError("num must be positive")
        if start < 0:
            raise ValueError("start must not be negative")
        with self._lock:
            if start + num > len(self._items):
                raise QueueEmptyError(
                    f"queue holds {len(self._items)} items, "
                    f"cannot take {num} from position {start}"
                )
            return [self._items[pos] for pos in range(start, start + num)]

    def delete_batch(self, num: int) -> None:
        """Remove ``num`` items from the front.

        If fewer are held, all of them are removed and QueueEmptyError is raised.
        """
        if num <= 0:
            raise ValueError("num must be positive")
        with self._lock:
            available = len(self._items)
            for _ in range(min(num, available)):
                self._items.popleft()
        if available < num:
            raise QueueEmptyError(f"only {available} of {num} items could be removed")

    def free_count(self) -> int:
        """Number of free slots."""
        with self._lock:
            return self._max - len(self._items)

    def used_count(self) -> int:
        """Number of items held."""
        with self._lock:
            return len(self._items)

    def max_count(self) -> int:
        """Capacity of the queue."""
        return self._max

    def __len__(self) -> int:
        return self.used_count()

    def __iter__(self) -> Iterator[T]:
        with self._lock:
            snapshot = list(self._items)
        return iter(snapshot)

    def __repr__(self) -> str:
        return f"BoundedQueue(max_items={self._max}, used={len(self)})"


def _first_or_none(queue: BoundedQueue[T]) -> Optional[T]:
    try:
        return queue.peek()
    except QueueEmptyError:
        return None