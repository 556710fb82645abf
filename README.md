# tkutils

tkutils is a set of small utilities written in the style of embedded firmware helpers. It has no dependencies outside the standard library.

## Modules

### `tkutils.tools`

Byte and string helpers:

- **Alignment:** `align_up(x, align)` and `align_down(x, align)` work for power-of-two alignments.
- **Hex:**
  - `asc2hex(ch)` returns the value of one hex digit. Any other character gives 0.
  - `ascs2hex(text)` turns pairs of hex digits into bytes. A trailing odd character is ignored.
  - `hex2str(data)` renders bytes as upper-case hex.
- **Decimal digits:**
  - `str2num(text)` parses digits into an unsigned 32-bit value. It raises `ValueError` on a non-digit.
  - `int2int_array(num, length)` splits a number into a list of digits.
  - `int_array2int(digits, index, length)` joins digits back into a number.
- **C-style comparisons:** `strcmp(a, b)` returns -1, 0 or 1. `strncasecmp(a, b, n)` ignores ASCII case.
- **Byte sequences:** `data_reverse(data)` and `byte_sort(data, ascending=True)` both return new `bytes`.
- **Searching:** `find_char_with_reverse_idx(text, index, ch)` searches backwards, skipping the last `index` characters. It returns the position, or `None` if the character is not found. It raises `ValueError` if `index` is out of range.
- **Bits:** `bit1_count(num)` and `leading_zeros_count(num)` work on 32-bit values.
- **Checksums:** `check_sum8(data)` and `check_sum16(data)` are additive checksums.

### `tkutils.dlist`

`LinkedList` is a circular doubly linked list of `ListNode` objects:

- `add` inserts at the front and `add_tail` appends at the back. Both accept either a value or a detached node, and both return the node.
- `splice(other)` moves all nodes of another list to the front.
- `remove(node)` unlinks a node and returns its value.
- `first()`, `clear()`, `nodes()`, iteration and `len()` are also available.

### `tkutils.ringbuf`

`RingBuffer(size)` is a byte FIFO over `size` bytes of storage. It holds at most `size - 1` bytes.

- `write(data)` stores as much of `data` as fits and returns the number of bytes written. It never overwrites unread data.
- `read(n)` removes up to `n` bytes and returns them.
- `peek(n)` returns up to `n` bytes without removing them.
- `free_size()`, `used_size()` and `reset()` are also available.

### `tkutils.hashmap`

`MultiHashMap(table_size)` is a hash map keyed by strings or bytes. It has a fixed number of buckets, chosen by `bucket_index(key, table_size)`, which is built on `crc32_hashmap`.

- `put` never replaces an existing value. The new entry goes in front of the older ones.
- `get(key)` returns the newest value. It raises `KeyError` if the key is missing.
- `values(key)` yields every value stored under the key, newest first.
- `remove(key, data=None)` removes the newest entry, or the newest entry equal to `data`. It raises `KeyError` if nothing matches.

### `tkutils.queue_fifo`

`BoundedQueue(max_items)` is a thread-safe FIFO with a fixed capacity.

- `put` adds at the back. It raises `QueueFullError` when the queue is full.
- `put_front` adds at the front, so the item is taken out next.
- `get`, `discard` and `peek` raise `QueueEmptyError` when the queue is empty.
- `traverse(callback, ctx)` calls the callback for each item, front to back, until it returns a false value.
- `get_batch(start, num)` returns items without removing them.
- `delete_batch(num)` removes items from the front.
- `clear()`, `free_count()`, `used_count()`, `max_count()`, `len()` and iteration are also available.

### `tkutils.smartpointer`

`SharedRef(data, count=1, copy_data=False, on_free=None)` holds data together with a reference count.

- `acquire()` increments the count and `release()` decrements it.
- When the count reaches zero the data is dropped and `on_free` is called with it. `delete()` does the same at once, whatever the count.
- `refcount()` and `released()` report the current state.
- Used as a context manager, it acquires on entry and releases on exit.

### `tkutils.memheap`

`Heap(base, size)` manages a simulated memory region. Addresses are plain integers.

Each block has a 4-byte size header and a one-byte guard that marks it as used or free. Allocation takes the first free block that fits, then looks a few blocks ahead for a tighter fit. Freed blocks are merged with adjacent free blocks.

- **Allocating:**
  - `malloc`, `calloc` and `realloc` return addresses.
  - `debug_malloc(size, filename, line)` also tags the block with where it was requested.
  - `free(address)` releases a block.
  - Failures raise `HeapError`: an exhausted heap, a double free, or a damaged guard.
- **Memory access:** `read(address, size)`, `write(address, data)` and `contains(address)`.
- **State:**
  - `available()` returns the free byte count.
  - `state()` returns a `HeapState` with the total size, the free size and the lowest free size seen.
  - `status()` walks every block and returns a `HeapStatus`. This includes validity, block counts and any debug-tagged allocations.
  - `diagnose()` logs that status and returns it.

`HeapPool(max_heaps=8)` groups several heaps:

- `create(base, size)` adds a heap and `delete(heap)` removes one.
- `malloc`, `calloc`, `realloc` and `free` serve requests from the heaps in creation order.
- `available()`, `state()` and `diagnose()` report over all heaps.

Heap memory is a Python `bytearray`. The allocator does not hand out real memory.

## Installation

```
pip install tkutils
```

## Examples

```python
from tkutils.tools import hex2str, check_sum8
from tkutils.ringbuf import RingBuffer
from tkutils.hashmap import MultiHashMap
from tkutils.queue_fifo import BoundedQueue
from tkutils.memheap import Heap

hex2str(b"\x01\xab")          # "01AB"
check_sum8(b"\xff\x02")       # 1

rb = RingBuffer(8)
rb.write(b"hello")            # 5
rb.read(3)                    # b"hel"

m = MultiHashMap(16)
m.put("k", 1)
m.put("k", 2)
list(m.values("k"))           # [2, 1]

q = BoundedQueue(2)
q.put("a")
q.put_front("b")
q.get()                       # "b"

heap = Heap(0x1000, 256)
addr = heap.malloc(10)
heap.write(addr, b"hi")
heap.read(addr, 2)            # b"hi"
heap.free(addr)
```

## Tests

Install the `test` extra and run `pytest`.