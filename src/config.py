"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants used across the codebase (cache
sizing and TTLs, the storage backend and its connection settings).
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Cache policy
CACHE_CAPACITY = _env_int("CACHE_CAPACITY", 256)
CACHE_TTL_MS = _env_int("CACHE_TTL_MS", 60_000)
CACHE_EXPIRY_CHECK_INTERVAL_MS = _env_int("CACHE_EXPIRY_CHECK_INTERVAL_MS", 1000)

# Storage backend: memory | file | redis | s3
CACHE_BACKEND = os.environ.get("CACHE_BACKEND", "memory").strip().lower()
CACHE_WRITE_THROUGH = _env_bool("CACHE_WRITE_THROUGH", True)

# File backend
CACHE_FILE_PATH = Path(os.environ.get("CACHE_FILE_PATH", "cache.json")).expanduser()

# Redis backend
REDIS_URL = os.environ.get("REDIS_URL", "").strip()
REDIS_KEY_PREFIX = os.environ.get("REDIS_KEY_PREFIX", "cache:")
REDIS_CONNECT_TIMEOUT = _env_float("REDIS_CONNECT_TIMEOUT", 5.0)

# S3 backend
S3_BUCKET = os.environ.get("S3_BUCKET", "").strip()
S3_OBJECT_KEY = os.environ.get("S3_OBJECT_KEY", "cache.json").strip()
AWS_REGION = os.environ.get("AWS_REGION", "").strip()
# Set for S3-compatible stores (LocalStack, MinIO)
AWS_ENDPOINT_URL = os.environ.get("AWS_ENDPOINT_URL", "").strip()

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
