"""JSON layout used by the persistent backends.

Snapshots are a JSON array of ``[key, {"value": ..., "expiry": <epoch ms>}]``
pairs, least recently used first, so loading them back restores both the
entries and their recency order.
"""

from __future__ import annotations

import json
from collections import OrderedDict
from typing import Any, Mapping

from core.errors import ValidationError
from core.models import CacheEntry, CacheKey


def encode_value(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Value is not JSON serializable: {e}") from e


def encode_entries(store: Mapping[CacheKey, CacheEntry[Any]]) -> bytes:
    pairs = [[key, {"value": entry.value, "expiry": entry.expires_at}] for key, entry in store.items()]
    return json.dumps(pairs).encode("utf-8")


def decode_entries(data: bytes) -> "OrderedDict[CacheKey, CacheEntry[Any]]":
    # Raises ValueError on any structural problem; callers discard the blob
    parsed = json.loads(data.decode("utf-8"))
    if not isinstance(parsed, list):
        raise ValueError("Snapshot must be a JSON array")

    out: "OrderedDict[CacheKey, CacheEntry[Any]]" = OrderedDict()
    for item in parsed:
        if not isinstance(item, list) or len(item) != 2:
            raise ValueError(f"Malformed snapshot item: {item!r}")
        key, raw = item
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            raise ValueError(f"Malformed snapshot key: {key!r}")
        if not isinstance(raw, dict) or "value" not in raw:
            raise ValueError(f"Malformed snapshot entry for key {key!r}")
        expiry = raw.get("expiry")
        if isinstance(expiry, bool) or not isinstance(expiry, int):
            raise ValueError(f"Malformed expiry for key {key!r}")
        out[key] = CacheEntry(value=raw["value"], expires_at=expiry)
    return out
