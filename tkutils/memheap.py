"""A first-fit heap allocator over a simulated address range.

Each block starts with a 4-byte size header and ends with a one-byte
guard that marks it as in use or free, so damage to the heap can be
found by walking it. Free blocks are kept in address order and merged
with their neighbours when released.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from tkutils.tools import align_down, align_up

ALIGN = 4
BLOCK_MIN_SIZE = 24
BLOCK_HEAD_SIZE = 4
HEAP_MIN_SIZE = BLOCK_MIN_SIZE + BLOCK_HEAD_SIZE
FIT_FIND_DEPTH = 3

STAT_USE = 0x55
STAT_FREE = 0xAA

LEAK_MAGIC = 0x13572468
LEAK_RECORD_SIZE = 16

DEFAULT_MAX_HEAPS = 8

_U32 = 0xFFFFFFFF

_logger = logging.getLogger(__name__)

Log = Callable[[str], object]


class HeapError(Exception):
    """Raised for exhausted heaps, bad addresses and damaged blocks."""


@dataclass(frozen=True)
class HeapState:
    """Totals for a heap or a pool of heaps, in bytes."""

    total_size: int
    free_size: int
    free_watermark: int


@dataclass
class HeapStatus:
    """Result of walking every block of a heap.

    ``allocations`` lists blocks taken with debug information as
    ``(filename, line, block_address, requested_size)``.
    """

    size: int
    free: int = 0
    free_largest: int = 0
    valid: bool = False
    used_block: int = 0
    free_block: int = 0
    allocations: list[tuple[str, int, int, int]] = field(default_factory=list)


class Heap:
    """One contiguous heap covering ``size`` bytes from address ``base``."""

    def __init__(self, base: int, size: int, log: Optional[Log] = None) -> None:
        if base < 0:
            raise ValueError("base must not be negative")
        if size <= 0:
            raise ValueError("size must be positive")
        self._base = base
        self._size = size
        self._mem = bytearray(size)
        self._log: Log = log if log is not None else _logger.debug
        self._pool: Optional[HeapPool] = None
        self._filenames: dict[int, str] = {}

        start = align_up(base, ALIGN)
        usable = align_down(size - (start - base), ALIGN)
        if usable < HEAP_MIN_SIZE:
            raise HeapError(
                f"heap of {size} bytes at {base:#x} is smaller than {HEAP_MIN_SIZE}"
            )
        self._start = start
        self._top = start + usable
        self._free_list: list[int] = [start]
        self._put_u32(start, usable)
        self._put_byte(start + usable - 1, STAT_FREE)
        self._free = usable
        self._watermark = usable

    # -- raw memory ---------------------------------------------------------

    @property
    def base(self) -> int:
        """First address of the heap region."""
        return self._base

    @property
    def size(self) -> int:
        """Size of the heap region as given."""
        return self._size

    def _offset(self, address: int, length: int = 1) -> int:
        off = address - self._base
        if off < 0 or length < 0 or off + length > self._size:
            raise HeapError(f"address {address:#x} (+{length}) lies outside the heap")
        return off

    def _get_byte(self, address: int) -> int:
        return self._mem[self._offset(address)]

    def _put_byte(self, address: int, value: int) -> None:
        self._mem[self._offset(address)] = value & 0xFF

    def _get_u32(self, address: int) -> int:
        off = self._offset(address, 4)
        return int.from_bytes(self._mem[off:off + 4], "little")

    def _put_u32(self, address: int, value: int) -> None:
        off = self._offset(address, 4)
        self._mem[off:off + 4] = (value & _U32).to_bytes(4, "little")

    def read(self, address: int, size: int) -> bytes:
        """Return ``size`` bytes of heap memory starting at ``address``."""
        off = self._offset(address, size)
        return bytes(self._mem[off:off + size])

    def write(self, address: int, data: bytes) -> None:
        """Store ``data`` in heap memory starting at ``address``."""
        raw = bytes(data)
        off = self._offset(address, len(raw))
        self._mem[off:off + len(raw)] = raw

    def contains(self, address: int) -> bool:
        """True when ``address`` lies strictly after the base and inside the heap."""
        return self._base < address < self._base + self._size

    # -- accounting ---------------------------------------------------------

    def _account(self, delta: int) -> None:
        self._free += delta
        if self._free < self._watermark:
            self._watermark = self._free
        if self._pool is not None:
            self._pool._account(delta)

    def available(self) -> int:
        """Bytes held by free blocks, headers included."""
        return self._free

    def state(self) -> HeapState:
        """Total size, free size and the lowest free size seen."""
        return HeapState(self._size, self._free, self._watermark)

    # -- allocation ---------------------------------------------------------

    def _chunk_get(self, need: int) -> Optional[int]:
        free = self._free_list
        for first, addr in enumerate(free):
            if self._get_u32(addr) < need:
                continue
            best = first
            found = 0
            for pos, other in enumerate(free[first + 1:], start=first + 1):
                other_size = self._get_u32(other)
                if need <= other_size <= self._get_u32(free[best]):
                    best = pos
                    found += 1
                if found >= FIT_FIND_DEPTH:
                    break
            chosen = free[best]
            chosen_size = self._get_u32(chosen)
            if chosen_size - need >= HEAP_MIN_SIZE:
                remaining = chosen_size - need
                self._put_u32(chosen, remaining)
                self._put_byte(chosen + remaining - 1, STAT_FREE)
                block = chosen + remaining
                self._put_u32(block, need)
                self._put_byte(block + need - 1, STAT_USE)
                return block
            del free[best]
            self._put_byte(chosen + chosen_size - 1, STAT_USE)
            return chosen
        return None

    def _allocate(self, size: int) -> Optional[int]:
        size = max(size, 4)
        need = align_up(size + 1, ALIGN) + BLOCK_HEAD_SIZE
        block = self._chunk_get(need)
        if block is None:
            return None
        self._account(-self._get_u32(block))
        return block + BLOCK_HEAD_SIZE

    def _debug_allocate(self, size: int, filename: str, line: int) -> Optional[int]:
        address = self._allocate(align_up(size, ALIGN) + LEAK_RECORD_SIZE)
        if address is None:
            return None
        block = address - BLOCK_HEAD_SIZE
        leak = block + self._get_u32(block) - LEAK_RECORD_SIZE - ALIGN
        self._put_u32(leak, 0)
        self._put_u32(leak + 4, line)
        self._put_u32(leak + 8, size)
        self._put_u32(leak + 12, LEAK_MAGIC)
        self._filenames[block] = filename
        return address

    def malloc(self, size: int) -> int:
        """Allocate ``size`` bytes and return the address of the first one."""
        if size <= 0:
            raise ValueError("size must be positive")
        address = self._allocate(size)
        if address is None:
            raise HeapError(f"cannot allocate {size} bytes")
        return address

    def calloc(self, size: int) -> int:
        """Allocate ``size`` bytes set to zero."""
        address = self.malloc(size)
        self.write(address, bytes(size))
        return address

    def debug_malloc(self, size: int, filename: str, line: int) -> int:
        """Allocate ``size`` bytes and tag the block with where it was requested."""
        if size <= 0:
            raise ValueError("size must be positive")
        address = self._debug_allocate(size, filename, line)
        if address is None:
            raise HeapError(f"cannot allocate {size} bytes")
        return address

    def _used_block(self, address: int, action: str) -> int:
        block = address - BLOCK_HEAD_SIZE
        block_size = self._get_u32(block)
        dog = self._get_byte(block + block_size - 1)
        if dog != STAT_USE:
            self._log(
                f"[MEM DBG] {action} guard tag error {address:#x}, size={block_size}"
            )
            if dog == STAT_FREE:
                self._log(f"[MEM DBG] mem {address:#x} might be freed yet")
                raise HeapError(f"block at {address:#x} is already free")
            raise HeapError(f"block at {address:#x} is damaged or not allocated")
        return block

    def free(self, address: int) -> None:
        """Release the block at ``address`` and merge it with free neighbours."""
        block = self._used_block(address, "free")
        block_size = self._get_u32(block)
        self._put_byte(block + block_size - 1, STAT_FREE)
        self._filenames.pop(block, None)
        self._account(block_size)

        free = self._free_list
        idx = bisect.bisect_left(free, block)
        nxt = free[idx] if idx < len(free) else None
        if idx == 0:
            free.insert(0, block)
            pre, pre_idx = block, 0
        else:
            pre, pre_idx = free[idx - 1], idx - 1
            if pre + self._get_u32(pre) == block:
                self._put_u32(pre, self._get_u32(pre) + block_size)
            else:
                free.insert(idx, block)
                pre, pre_idx = block, idx
        if nxt is not None and pre + self._get_u32(pre) == nxt:
            self._put_u32(pre, self._get_u32(pre) + self._get_u32(nxt))
            del free[pre_idx + 1]

    def realloc(self, address: Optional[int], size: int) -> int:
        """Grow the block at ``address`` to ``size`` bytes, moving it if needed."""
        if address is None:
            return self.malloc(size)
        return _realloc(self, address, size, self.malloc, self.free)

    # -- diagnostics --------------------------------------------------------

    def status(self) -> HeapStatus:
        """Walk every block and check that the free list matches the guards."""
        st = HeapStatus(size=self._size)
        free = self._free_list
        fi = 0
        addr = self._start
        error: Optional[str] = None
        while addr < self._top:
            try:
                block_size = self._get_u32(addr)
                dog = self._get_byte(addr + block_size - 1) if block_size > 0 else None
            except HeapError:
                block_size, dog = 0, None
            if dog == STAT_USE:
                if fi < len(free) and free[fi] == addr:
                    error = f"[ERROR]thisBlockp == freeBlockp,addr={addr:#x},size={block_size}"
                    break
                leak = addr + block_size - LEAK_RECORD_SIZE - ALIGN
                try:
                    magic = self._get_u32(leak + 12)
                except HeapError:
                    magic = None
                if magic == LEAK_MAGIC:
                    filename = self._filenames.get(addr, "?")
                    line = self._get_u32(leak + 4)
                    requested = self._get_u32(leak + 8)
                    st.allocations.append((filename, line, addr, requested))
                    self._log(
                        f"[MEM DBG] [mem use] {filename}:{line}, addr={addr:#x}, size={requested}"
                    )
                st.used_block += 1
            elif dog == STAT_FREE:
                if fi >= len(free) or free[fi] != addr:
                    error = f"[ERROR]thisBlockp != freeBlockp,addr={addr:#x},size={block_size}"
                    break
                this_size = block_size - BLOCK_HEAD_SIZE - 1
                st.free += this_size
                st.free_largest = max(st.free_largest, this_size)
                fi += 1
                st.free_block += 1
            else:
                error = f"DOG TAG ERR:addr={addr:#x},size={block_size}"
                break
            addr += block_size

        if error is not None:
            self._log(f"[MEM DBG] {error}")
        else:
            st.valid = addr == self._top and fi == len(free)
        return st

    def diagnose(self) -> HeapStatus:
        """Log a summary of :meth:`status` and return it."""
        st = self.status()
        if not st.valid:
            self._log("[MEM DBG] SYS_MemStat !!!!! MEM MNG DAMAGED!!!!! ")
        self._log(
            f"[MEM DBG] Heap size={st.size}, free={st.free}, "
            f"free_largest={st.free_largest}, malloc_block={st.used_block}, "
            f"free_block={st.free_block}"
        )
        return st

    def __repr__(self) -> str:
        return f"Heap(base={self._base:#x}, size={self._size}, free={self._free})"


def _realloc(
    heap: Heap,
    address: int,
    size: int,
    malloc: Callable[[int], int],
    free: Callable[[int], None],
) -> int:
    if size < 0:
        raise ValueError("size must not be negative")
    block = heap._used_block(address, "realloc")
    old_size = heap._get_u32(block)
    size = max(size, 4)
    need = align_up(size + 1, ALIGN) + BLOCK_HEAD_SIZE
    if need <= old_size:
        return address
    new_address = malloc(size)
    data = heap.read(address, old_size - BLOCK_HEAD_SIZE)
    if heap.contains(new_address):
        heap.write(new_address, data)
        free(address)
        return new_address
    # The new block came from another heap of the pool.
    return_address = new_address
    free(address)
    return return_address


class HeapPool:
    """A set of heaps that allocations are served from in creation order."""

    def __init__(self, max_heaps: int = DEFAULT_MAX_HEAPS, log: Optional[Log] = None) -> None:
        if max_heaps <= 0:
            raise ValueError("max_heaps must be positive")
        self._max = max_heaps
        self._log: Log = log if log is not None else _logger.debug
        self._heaps: list[Heap] = []
        self._free = 0
        self._watermark = 0

    @property
    def heaps(self) -> list[Heap]:
        """The heaps of the pool, in creation order."""
        return list(self._heaps)

    def _account(self, delta: int) -> None:
        self._free += delta
        if self._free < self._watermark:
            self._watermark = self._free

    def create(self, base: int, size: int) -> Heap:
        """Add a heap over ``size`` bytes at ``base`` and return it."""
        self._log(f"[MEM DBG] heap init-------size:{size} addr:{base:#x}---------")
        if len(self._heaps) >= self._max:
            raise HeapError(f"pool already holds {self._max} heaps")
        heap = Heap(base, size, log=self._log)
        heap._pool = self
        self._heaps.append(heap)
        self._free += heap.available()
        self._watermark = self._free
        return heap

    def delete(self, heap: Heap) -> None:
        """Remove ``heap`` from the pool."""
        for pos, member in enumerate(self._heaps):
            if member is heap:
                del self._heaps[pos]
                heap._pool = None
                self._free -= heap.available()
                return
        raise HeapError("heap does not belong to this pool")

    def _heap_for(self, address: int) -> Heap:
        for heap in self._heaps:
            if heap.contains(address):
                return heap
        raise HeapError(f"address {address:#x} is not in any heap of the pool")

    def malloc(self, size: int) -> int:
        """Allocate from the first heap with room for ``size`` bytes."""
        if size <= 0:
            raise ValueError("size must be positive")
        for heap in self._heaps:
            if heap.available() > size + BLOCK_MIN_SIZE:
                address = heap._allocate(size)
                if address is not None:
                    return address
        raise HeapError(f"cannot allocate {size} bytes")

    def calloc(self, size: int) -> int:
        """Allocate ``size`` bytes set to zero."""
        address = self.malloc(size)
        self._heap_for(address).write(address, bytes(size))
        return address

    def realloc(self, address: Optional[int], size: int) -> int:
        """Grow the block at ``address`` to ``size`` bytes, moving it if needed."""
        if address is None:
            return self.malloc(size)
        heap = self._heap_for(address)
        if size < 0:
            raise ValueError("size must not be negative")
        block = heap._used_block(address, "realloc")
        old_size = heap._get_u32(block)
        size = max(size, 4)
        need = align_up(size + 1, ALIGN) + BLOCK_HEAD_SIZE
        if need <= old_size:
            return address
        new_address = self.malloc(size)
        data = heap.read(address, old_size - BLOCK_HEAD_SIZE)
        self._heap_for(new_address).write(new_address, data)
        self.free(address)
        return new_address

    def free(self, address: int) -> None:
        """Release the block at ``address`` in whichever heap holds it."""
        self._heap_for(address).free(address)

    def available(self) -> int:
        """Free bytes over all heaps."""
        return self._free

    def state(self) -> HeapState:
        """Totals over all heaps."""
        return HeapState(
            sum(heap.size for heap in self._heaps), self._free, self._watermark
        )

    def diagnose(self) -> list[HeapStatus]:
        """Diagnose every heap and return their statuses."""
        return [heap.diagnose() for heap in self._heaps]

    def __repr__(self) -> str:
        return f"HeapPool(heaps={len(self._heaps)}, free={self._free})"