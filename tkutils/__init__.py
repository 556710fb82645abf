"""Embedded-style utilities: byte helpers, containers, reference counting and a simulated heap allocator."""

__version__ = "0.1.0"

__all__ = ["tools", "dlist", "ringbuf", "hashmap", "queue_fifo", "smartpointer", "memheap"]