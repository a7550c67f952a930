"""Data model shared by the cache core and storage backends.

Includes the MISS sentinel returned for absent/expired keys, the
CacheEntry stored by backends and the immutable CacheConfig.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from core.errors import ValidationError

T = TypeVar("T")

CacheKey = Union[str, int]


class Miss:
    # Singleton: no stored value can ever be identical to it
    _instance: "Miss | None" = None

    def __new__(cls) -> "Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"

    def __reduce__(self) -> str:
        return "MISS"


MISS = Miss()


def is_miss(result: Any) -> bool:
    return result is MISS


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    # Stores value + absolute expiry (epoch milliseconds)
    value: T
    expires_at: int

    def is_expired(self, now: int) -> bool:
        # An entry is logically absent at or after its expiry instant
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheConfig:
    """Immutable cache configuration.

    Field groups:
    - Capacity: capacity (max resident entries)
    - Expiry: ttl_ms, expiry_check_interval_ms
    """

    capacity: int
    ttl_ms: int
    expiry_check_interval_ms: int = 1000

    def __post_init__(self) -> None:
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int) or self.capacity <= 0:
            raise ValidationError(f"capacity must be a positive integer, got {self.capacity!r}")
        if isinstance(self.ttl_ms, bool) or not isinstance(self.ttl_ms, int) or self.ttl_ms < 0:
            raise ValidationError(f"ttl_ms must be a non-negative integer, got {self.ttl_ms!r}")
        interval = self.expiry_check_interval_ms
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise ValidationError(f"expiry_check_interval_ms must be a positive integer, got {interval!r}")


def validate_key(key: Any) -> CacheKey:
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise ValidationError(f"Cache keys must be str or int, got {type(key).__name__}")
    return key
