"""A doubly linked list with a sentinel head and O(1) node removal."""

from __future__ import annotations

from typing import Any, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class ListNode(Generic[T]):
    """One entry of a :class:`LinkedList`, holding a value."""

    __slots__ = ("value", "prev", "next", "_owner")

    def __init__(self, value: T = None) -> None:  # type: ignore[assignment]
        self.value = value
        self.prev: ListNode[T] = self
        self.next: ListNode[T] = self
        self._owner: Optional[LinkedList[T]] = None

    def _unlink(self) -> None:
        self.next.prev = self.prev
        self.prev.next = self.next
        self.prev = self
        self.next = self
        self._owner = None

    def __repr__(self) -> str:
        return f"ListNode({self.value!r})"


class LinkedList(Generic[T]):
    """Circular doubly linked list; nodes can be unlinked in constant time."""

    def __init__(self, values: Any = ()) -> None:
        self._head: ListNode[T] = ListNode()
        self._size = 0
        for value in values:
            self.add_tail(value)

    @staticmethod
    def _link(node: ListNode[T], prev: ListNode[T], nxt: ListNode[T]) -> None:
        nxt.prev = node
        node.next = nxt
        node.prev = prev
        prev.next = node

    def _adopt(self, value: Any) -> ListNode[T]:
        if isinstance(value, ListNode):
            if value._owner is not None:
                raise ValueError("node already belongs to a list")
            node = value
        else:
            node = ListNode(value)
        node._owner = self
        self._size += 1
        return node

    def is_empty(self) -> bool:
        """True when the list holds no nodes."""
        return self._head.next is self._head

    def add(self, value: Any) -> ListNode[T]:
        """Insert a value (or a detached node) at the front; return its node."""
        node = self._adopt(value)
        self._link(node, self._head, self._head.next)
        return node

    def add_tail(self, value: Any) -> ListNode[T]:
        """Append a value (or a detached node) at the back; return its node."""
        node = self._adopt(value)
        self._link(node, self._head.prev, self._head)
        return node

    def splice(self, other: LinkedList[T]) -> None:
        """Move all nodes of ``other`` to the front of this list, keeping their order.

        ``other`` is left empty.
        """
        if other is self:
            raise ValueError("cannot splice a list into itself")
        if other.is_empty():
            return
        first = other._head.next
        last = other._head.prev
        at = self._head.next
        for node in other.nodes():
            node._owner = self
        first.prev = self._head
        self._head.next = first
        last.next = at
        at.prev = last
        self._size += other._size
        other._head.next = other._head
        other._head.prev = other._head
        other._size = 0

    def remove(self, node: ListNode[T]) -> T:
        """Unlink ``node`` from this list and return its value."""
        if node._owner is not self:
            raise ValueError("node does not belong to this list")
        node._unlink()
        self._size -= 1
        return node.value

    def first(self) -> Optional[ListNode[T]]:
        """Return the first node, or None when the list is empty."""
        if self.is_empty():
            return None
        return self._head.next

    def clear(self) -> None:
        """Remove every node."""
        for node in self.nodes():
            node._unlink()
        self._size = 0

    def nodes(self) -> Iterator[ListNode[T]]:
        """Yield the nodes front to back; the current node may be removed meanwhile."""
        node = self._head.next
        while node is not self._head:
            following = node.next
            yield node
            node = following

    def __iter__(self) -> Iterator[T]:
        for node in self.nodes():
            yield node.value

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"LinkedList({list(self)!r})"