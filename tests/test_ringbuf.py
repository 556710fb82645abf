import pytest

from tkutils.ringbuf import RingBuffer


def test_new_buffer_sizes():
    rb = RingBuffer(8)
    assert rb.used_size() == 0
    assert rb.free_size() == rb.size - 1


@pytest.mark.parametrize("size", [0, -1, 0x10000])
def test_invalid_size(size):
    with pytest.raises(ValueError):
        RingBuffer(size)


def test_write_then_read_round_trip():
    rb = RingBuffer(16)
    assert rb.write(b"hello") == 5
    assert rb.used_size() == 5
    assert rb.read(5) == b"hello"
    assert rb.used_size() == 0


def test_write_truncates_to_free_space():
    rb = RingBuffer(4)
    payload = b"abcdef"
    written = rb.write(payload)
    assert written == rb.size - 1
    assert rb.free_size() == 0
    assert rb.write(b"z") == 0
    assert rb.read(10) == payload[:written]


def test_read_more_than_available():
    rb = RingBuffer(10)
    rb.write(b"ab")
    assert rb.read(100) == b"ab"
    assert rb.read(1) == b""


def test_peek_does_not_consume():
    rb = RingBuffer(10)
    rb.write(b"xyz")
    assert rb.peek(2) == b"xy"
    assert rb.used_size() == 3
    assert rb.read(3) == b"xyz"


def test_wraparound_preserves_order():
    rb = RingBuffer(6)
    rb.write(b"abcd")
    assert rb.read(3) == b"abc"
    assert rb.write(b"efgh") == 4
    assert rb.peek(5) == b"defgh"
    assert rb.read(5) == b"defgh"
    assert rb.used_size() == 0


def test_many_cycles_keep_stream_intact():
    rb = RingBuffer(7)
    stream = bytes(range(200))
    received = bytearray()
    pos = 0
    while len(received) < len(stream):
        pos += rb.write(stream[pos:pos + 4])
        received += rb.read(3)
        assert rb.used_size() + rb.free_size() == rb.size - 1
    assert bytes(received) == stream


def test_reset_discards_data():
    rb = RingBuffer(8)
    rb.write(b"data")
    rb.reset()
    assert rb.used_size() == 0
    assert rb.read(4) == b""


def test_negative_read_raises():
    rb = RingBuffer(8)
    with pytest.raises(ValueError):
        rb.read(-1)


def test_empty_write():
    rb = RingBuffer(8)
    assert rb.write(b"") == 0
    assert rb.used_size() == 0