import copy
import json

import pytest

from core.errors import ValidationError
from core.models import MISS, CacheConfig, CacheEntry, Miss, is_miss, validate_key
from core.recency import RecencyIndex
from storage.codec import decode_entries, encode_entries, encode_value


def test_miss_is_a_falsy_singleton():
    assert Miss() is MISS
    assert copy.deepcopy(MISS) is MISS
    assert not MISS
    assert repr(MISS) == "MISS"
    assert is_miss(MISS)
    assert not is_miss(None)
    assert not is_miss(-1)


def test_entry_expired_at_or_after_expiry():
    e = CacheEntry(value="v", expires_at=1000)
    assert not e.is_expired(999)
    assert e.is_expired(1000)
    assert e.is_expired(1001)


def test_config_defaults():
    c = CacheConfig(capacity=3, ttl_ms=0)
    assert c.expiry_check_interval_ms == 1000


def test_validate_key():
    assert validate_key("a") == "a"
    assert validate_key(7) == 7
    with pytest.raises(ValidationError):
        validate_key(False)


def test_decode_entries_preserves_order_and_expiry():
    data = json.dumps([["b", {"value": [1, 2], "expiry": 1700000000123}], [3, {"value": None, "expiry": 5}]])

    out = decode_entries(data.encode("utf-8"))

    assert list(out) == ["b", 3]
    assert out["b"].value == [1, 2]
    assert out["b"].expires_at == 1700000000123
    assert out[3].value is None


def test_encode_entries_layout():
    store = {"a": CacheEntry(value={"x": 1}, expires_at=42)}
    assert json.loads(encode_entries(store)) == [["a", {"value": {"x": 1}, "expiry": 42}]]


@pytest.mark.parametrize(
    "blob",
    [
        b"not json",
        b'{"a": 1}',
        b'[["a"]]',
        b'[[1.5, {"value": 1, "expiry": 1}]]',
        b'[["a", {"expiry": 1}]]',
        b'[["a", {"value": 1, "expiry": "soon"}]]',
        b"\xff\xfe",
    ],
)
def test_decode_entries_rejects_malformed(blob):
    with pytest.raises(ValueError):
        decode_entries(blob)


def test_encode_value_rejects_unserializable():
    with pytest.raises(ValidationError):
        encode_value(object())


def test_recency_index_reports_expired_writes_oldest_first():
    index = RecencyIndex()
    index.record_write("a", 1000)
    index.record_write("b", 2000)
    index.record_write("c", 3000)
    # Rewriting moves the key to the back of the expiry queue
    index.record_write("a", 4000)
    index.touch("b")

    assert index.expired(1999) == []
    assert index.expired(2000) == ["b"]
    assert index.expired(3500) == ["b", "c"]

    index.discard("b")
    assert index.expired(3500) == ["c"]
    assert index.keys() == ["c", "a"]
    assert index.lru_key() == "c"
