import pytest

from tkutils.memheap import (
    ALIGN,
    BLOCK_HEAD_SIZE,
    HEAP_MIN_SIZE,
    Heap,
    HeapError,
    HeapPool,
    HeapState,
)

BASE = 0x1000
SIZE = 1024


@pytest.fixture
def heap():
    return Heap(BASE, SIZE)


def test_new_heap_is_all_free(heap):
    assert heap.available() == SIZE
    assert heap.state() == HeapState(SIZE, SIZE, SIZE)
    st = heap.status()
    assert st.valid
    assert st.free_block == 1
    assert st.used_block == 0


def test_unaligned_base_trims_region():
    h = Heap(BASE + 1, 100)
    assert h.available() % ALIGN == 0
    assert h.available() < 100
    assert h.status().valid


def test_too_small_heap_raises():
    with pytest.raises(HeapError):
        Heap(BASE, HEAP_MIN_SIZE - 1)


def test_malloc_and_free_round_trip(heap):
    address = heap.malloc(10)
    assert heap.contains(address)
    assert heap.available() < SIZE
    assert heap.status().used_block == 1
    heap.free(address)
    assert heap.available() == SIZE
    st = heap.status()
    assert st.valid and st.free_block == 1 and st.used_block == 0


def test_malloc_zero_raises(heap):
    with pytest.raises(ValueError):
        heap.malloc(0)


def test_write_read_round_trip(heap):
    address = heap.malloc(8)
    heap.write(address, b"abcdefgh")
    assert heap.read(address, 8) == b"abcdefgh"
    assert heap.status().valid


def test_calloc_zeroes_reused_memory(heap):
    first = heap.malloc(16)
    heap.write(first, b"\xff" * 16)
    heap.free(first)
    second = heap.calloc(16)
    assert heap.read(second, 16) == bytes(16)


def test_double_free_raises(heap):
    address = heap.malloc(10)
    heap.free(address)
    with pytest.raises(HeapError):
        heap.free(address)


def test_free_outside_heap_raises(heap):
    with pytest.raises(HeapError):
        heap.free(BASE + SIZE + 100)


def test_exhaust_then_free_coalesces(heap):
    addresses = []
    with pytest.raises(HeapError):
        while True:
            addresses.append(heap.malloc(16))
    assert len(addresses) > 1
    assert len(set(addresses)) == len(addresses)
    for address in addresses[::2] + addresses[1::2]:
        heap.free(address)
    assert heap.available() == SIZE
    st = heap.status()
    assert st.valid and st.free_block == 1


def test_reuses_tightest_hole(heap):
    heap.malloc(10)
    middle = heap.malloc(10)
    heap.malloc(10)
    heap.free(middle)
    assert heap.status().free_block == 2
    assert heap.malloc(10) == middle


def test_realloc_grows_and_keeps_data(heap):
    address = heap.malloc(8)
    heap.write(address, b"12345678")
    bigger = heap.realloc(address, 100)
    assert bigger != address
    assert heap.read(bigger, 8) == b"12345678"
    assert heap.status().used_block == 1
    assert heap.status().valid


def test_realloc_smaller_keeps_address(heap):
    address = heap.malloc(64)
    assert heap.realloc(address, 8) == address


def test_realloc_none_allocates(heap):
    address = heap.realloc(None, 20)
    assert heap.contains(address)
    assert heap.status().used_block == 1


def test_watermark_tracks_lowest_free(heap):
    address = heap.malloc(200)
    low = heap.available()
    heap.free(address)
    state = heap.state()
    assert state.free_size == SIZE
    assert state.free_watermark == low


def test_overwritten_guard_is_detected(heap):
    address = heap.malloc(10)
    heap.write(address, bytes(BASE + SIZE - address))
    assert not heap.status().valid
    with pytest.raises(HeapError):
        heap.free(address)


def test_debug_malloc_records_origin(heap):
    address = heap.debug_malloc(10, "main.c", 42)
    st = heap.status()
    assert st.allocations == [("main.c", 42, address - BLOCK_HEAD_SIZE, 10)]
    heap.free(address)
    assert heap.status().allocations == []


def test_diagnose_logs_summary():
    messages = []
    h = Heap(BASE, SIZE, log=messages.append)
    st = h.diagnose()
    assert st.valid
    assert any(f"Heap size={SIZE}" in m for m in messages)


def test_pool_spills_into_next_heap():
    pool = HeapPool()
    first = pool.create(BASE, 256)
    second = pool.create(0x8000, 256)
    assert pool.available() == 512
    a = pool.malloc(200)
    b = pool.malloc(200)
    assert first.contains(a)
    assert second.contains(b)
    pool.free(a)
    pool.free(b)
    assert pool.available() == 512
    assert pool.state().total_size == 512


def test_pool_watermark():
    pool = HeapPool()
    pool.create(BASE, SIZE)
    assert pool.state().free_watermark == SIZE
    address = pool.malloc(100)
    low = pool.available()
    pool.free(address)
    assert pool.state() == HeapState(SIZE, SIZE, low)


def test_pool_limits_and_errors():
    pool = HeapPool(max_heaps=1)
    heap = pool.create(BASE, SIZE)
    with pytest.raises(HeapError):
        pool.create(0x8000, SIZE)
    with pytest.raises(HeapError):
        pool.free(0x9000)
    with pytest.raises(HeapError):
        pool.delete(Heap(0x8000, SIZE))
    pool.delete(heap)
    assert pool.heaps == []
    assert pool.available() == 0


def test_pool_calloc_and_realloc():
    pool = HeapPool()
    heap = pool.create(BASE, SIZE)
    address = pool.calloc(12)
    assert heap.read(address, 12) == bytes(12)
    heap.write(address, b"hello world!")
    moved = pool.realloc(address, 300)
    assert heap.read(moved, 12) == b"hello world!"
    assert all(st.valid for st in pool.diagnose())