from __future__ import annotations


class CacheError(Exception):
    """Base error for the cache."""


class ValidationError(CacheError):
    """Raised when configuration, a key or a value is invalid."""


class StorageError(CacheError):
    """Raised when a storage backend (file/Redis/object store) fails."""


class CacheClosedError(CacheError):
    """Raised when an operation is attempted on a stopped cache."""
