"""Server bootstrap for the LRU cache MCP service.

Builds the storage backend and cache from config, creates the FastMCP
instance with a lifespan that starts and stops the cache, registers the
cache tools and starts the MCP server (stdio transport).
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from mcp.server.fastmcp import FastMCP

from config import (
    AWS_ENDPOINT_URL,
    AWS_REGION,
    CACHE_BACKEND,
    CACHE_CAPACITY,
    CACHE_EXPIRY_CHECK_INTERVAL_MS,
    CACHE_FILE_PATH,
    CACHE_TTL_MS,
    CACHE_WRITE_THROUGH,
    LOG_LEVEL,
    REDIS_CONNECT_TIMEOUT,
    REDIS_KEY_PREFIX,
    REDIS_URL,
    S3_BUCKET,
    S3_OBJECT_KEY,
)
from core.cache import ExpiringLRUCache
from core.logging_setup import setup_logging
from storage.storage_factory import get_storage

from tools.cache_tools import register as register_cache_tools


def build_cache() -> ExpiringLRUCache[Any]:
    storage = get_storage(
        CACHE_BACKEND,
        file_path=CACHE_FILE_PATH,
        write_through=CACHE_WRITE_THROUGH,
        redis_url=REDIS_URL,
        redis_key_prefix=REDIS_KEY_PREFIX,
        redis_connect_timeout=REDIS_CONNECT_TIMEOUT,
        s3_bucket=S3_BUCKET,
        s3_object_key=S3_OBJECT_KEY,
        aws_region=AWS_REGION,
        aws_endpoint_url=AWS_ENDPOINT_URL,
    )
    return ExpiringLRUCache(
        capacity=CACHE_CAPACITY,
        ttl_ms=CACHE_TTL_MS,
        storage=storage,
        expiry_check_interval_ms=CACHE_EXPIRY_CHECK_INTERVAL_MS,
    )


cache = build_cache()


@asynccontextmanager
async def lifespan(_server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    # The cache is stopped explicitly when the server shuts down
    await cache.start()
    try:
        yield {"cache": cache}
    finally:
        await cache.stop()


mcp = FastMCP("lru-cache-mcp", lifespan=lifespan)


def register_tools() -> None:
    register_cache_tools(mcp, cache=cache)


def register_all() -> None:
    register_tools()


register_all()


def main() -> None:
    setup_logging(LOG_LEVEL)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
