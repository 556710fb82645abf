"""A reference-counted holder that drops its data when the last user releases it."""

from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SharedRef(Generic[T]):
    """Holds ``data`` together with a reference count.

    With ``copy_data`` true a private copy of ``data`` is kept. When the
    count drops to zero, or :meth:`delete` is called, the data is dropped
    and ``on_free`` (if given) is called with it.
    """

    def __init__(
        self,
        data: T,
        count: int = 1,
        copy_data: bool = False,
        on_free: Optional[Callable[[T], Any]] = None,
    ) -> None:
        if data is None:
            raise ValueError("data is required")
        try:
            if len(data) == 0:  # type: ignore[arg-type]
                raise ValueError("data must not be empty")
        except TypeError:
            pass
        if count < 0:
            raise ValueError("count must not be negative")
        self._lock = threading.Lock()
        self._data: Optional[T] = copy.copy(data) if copy_data else data
        self._count = count
        self._released = False
        self._on_free = on_free

    @property
    def data(self) -> T:
        """The held data; raises RuntimeError once released."""
        with self._lock:
            if self._released:
                raise RuntimeError("reference has been released")
            return self._data  # type: ignore[return-value]

    def _free(self) -> None:
        data = self._data
        self._data = None
        self._released = True
        if self._on_free is not None:
            self._on_free(data)  # type: ignore[arg-type]

    def acquire(self) -> SharedRef[T]:
        """Increase the reference count and return self."""
        with self._lock:
            if self._released:
                raise RuntimeError("reference has been released")
            self._count += 1
        return self

    def release(self) -> None:
        """Decrease the reference count, freeing the data when it reaches zero."""
        with self._lock:
            if self._released:
                raise RuntimeError("reference has been released")
            if self._count == 0:
                raise RuntimeError("reference count is already zero")
            self._count -= 1
            last = self._count == 0
        if last:
            self._free()

    def delete(self) -> None:
        """Free the data at once, whatever the reference count."""
        with self._lock:
            if self._released:
                raise RuntimeError("reference has been released")
            self._count = 0
        self._free()

    def refcount(self) -> int:
        """Current reference count."""
        with self._lock:
            return self._count

    def released(self) -> bool:
        """True once the data has been freed."""
        with self._lock:
            return self._released

    def __enter__(self) -> T:
        return self.acquire().data

    def __exit__(self, *exc: object) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else f"refcount={self._count}"
        return f"SharedRef({state})"