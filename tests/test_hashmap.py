import pytest

from tkutils.hashmap import MultiHashMap, bucket_index, crc32_hashmap


def test_crc_of_empty_is_zero():
    assert crc32_hashmap(b"") == 0


def test_crc_single_byte_matches_table_entries():
    assert crc32_hashmap(b"\x01") == 0x77073096
    assert crc32_hashmap(b"\x80") == 0xEDB88320
    assert crc32_hashmap(b"\xff") == 0x2D02EF8D


def test_crc_is_32_bit():
    value = crc32_hashmap(b"some longer key text")
    assert 0 <= value <= 0xFFFFFFFF


def test_bucket_index_in_range_and_stable():
    for key in ["a", "b", "device", "temperature", ""]:
        idx = bucket_index(key, 7)
        assert 0 <= idx < 7
        assert bucket_index(key, 7) == idx
        assert bucket_index(key.encode(), 7) == idx


def test_bucket_index_single_slot():
    assert bucket_index("anything", 1) == 0


def test_bucket_index_rejects_zero_size():
    with pytest.raises(ValueError):
        bucket_index("a", 0)


def test_new_rejects_zero_table():
    with pytest.raises(ValueError):
        MultiHashMap(0)


def test_put_and_get():
    m = MultiHashMap(16)
    m.put("alpha", 1)
    m.put("beta", 2)
    assert m.get("alpha") == 1
    assert m.get("beta") == 2
    assert len(m) == 2


def test_get_missing_raises():
    m = MultiHashMap(4)
    with pytest.raises(KeyError):
        m.get("nope")


def test_same_key_newest_first():
    m = MultiHashMap(8)
    m.put("k", "first")
    m.put("k", "second")
    m.put("k", "third")
    assert m.get("k") == "third"
    assert list(m.values("k")) == ["third", "second", "first"]
    assert len(m) == 3


def test_values_skip_colliding_keys():
    m = MultiHashMap(1)
    m.put("x", 1)
    m.put("y", 2)
    m.put("x", 3)
    assert list(m.values("x")) == [3, 1]
    assert list(m.values("y")) == [2]
    assert list(m.values("z")) == []


def test_remove_without_data_removes_newest():
    m = MultiHashMap(8)
    m.put("k", "a")
    m.put("k", "b")
    m.remove("k")
    assert m.get("k") == "a"
    assert len(m) == 1


def test_remove_specific_data():
    m = MultiHashMap(8)
    m.put("k", "a")
    m.put("k", "b")
    m.put("k", "c")
    m.remove("k", "b")
    assert list(m.values("k")) == ["c", "a"]
    assert len(m) == 2


def test_remove_missing_raises():
    m = MultiHashMap(8)
    with pytest.raises(KeyError):
        m.remove("k")
    m.put("k", "a")
    with pytest.raises(KeyError):
        m.remove("k", "other")
    assert len(m) == 1


def test_contains():
    m = MultiHashMap(4)
    m.put("here", 0)
    assert "here" in m
    assert "gone" not in m
    m.remove("here")
    assert "here" not in m
    assert 42 not in m


def test_many_keys_round_trip():
    m = MultiHashMap(5)
    keys = [f"key{i}" for i in range(50)]
    for i, key in enumerate(keys):
        m.put(key, i)
    assert len(m) == 50
    for i, key in enumerate(keys):
        assert m.get(key) == i
    for key in keys:
        m.remove(key)
    assert len(m) == 0


def test_bad_key_type():
    m = MultiHashMap(4)
    with pytest.raises(TypeError):
        m.put(3, "x")