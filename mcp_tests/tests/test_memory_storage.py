import pytest

from core.models import MISS
from storage.memory_storage import MemoryStorage


@pytest.mark.asyncio
async def test_get_missing_returns_miss(clock):
    s = MemoryStorage(clock=clock)
    assert await s.get("nope") is MISS


@pytest.mark.asyncio
async def test_put_get_and_lazy_expiry(clock):
    s = MemoryStorage(clock=clock)

    await s.put("k", "v", 100)
    assert await s.get("k") == "v"

    clock.advance(100)
    assert await s.get("k") is MISS
    # Observed-expired entry is physically removed
    assert len(s) == 0


@pytest.mark.asyncio
async def test_get_moves_key_to_most_recent_end(clock):
    s = MemoryStorage(clock=clock)

    await s.put("a", 1, 1000)
    await s.put("b", 2, 1000)
    await s.put("c", 3, 1000)
    assert s.lru_key() == "a"

    await s.get("a")

    assert await s.keys() == ["b", "c", "a"]
    assert s.lru_key() == "b"


@pytest.mark.asyncio
async def test_put_reinserts_at_most_recent_end(clock):
    s = MemoryStorage(clock=clock)

    await s.put("a", 1, 1000)
    await s.put("b", 2, 1000)
    await s.put("a", 3, 1000)

    assert await s.keys() == ["b", "a"]
    assert await s.get("a") == 3


@pytest.mark.asyncio
async def test_delete_absent_is_noop(clock):
    s = MemoryStorage(clock=clock)

    await s.delete("missing")
    await s.put("a", 1, 1000)
    await s.delete("a")

    assert len(s) == 0


@pytest.mark.asyncio
async def test_stop_discards_state_and_is_idempotent(clock):
    s = MemoryStorage(clock=clock)
    await s.put("a", 1, 1000)

    await s.stop()
    await s.stop()

    assert len(s) == 0
