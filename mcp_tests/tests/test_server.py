import sys
import types
import uuid
import importlib.util
from pathlib import Path

import pytest

from core.cache import ExpiringLRUCache
from storage.memory_storage import MemoryStorage


def _find_server_py() -> Path:
    # Try common layouts:
    # 1) <root>/server.py
    # 2) <root>/server/server.py
    # 3) <root>/src/server/server.py
    root = Path(__file__).resolve().parents[2]
    candidates = [
        root / "server.py",
        root / "server" / "server.py",
        root / "src" / "server" / "server.py",
    ]
    for p in candidates:
        if p.exists():
            return p
    raise FileNotFoundError(f"Could not find server.py. Tried: {candidates}")


def _install_fake_modules(monkeypatch, captures: dict):
    # ---- Fake mcp.server.fastmcp.FastMCP ----
    mcp_mod = types.ModuleType("mcp")
    mcp_server_mod = types.ModuleType("mcp.server")
    fastmcp_mod = types.ModuleType("mcp.server.fastmcp")

    class DummyFastMCP:
        def __init__(self, name: str, *, lifespan=None):
            captures["fastmcp_name"] = name
            captures["lifespan"] = lifespan
            captures["mcp_instance"] = self
            self.run_calls = []

        def run(self, *, transport: str):
            self.run_calls.append({"transport": transport})
            captures["run_calls"] = list(self.run_calls)

    fastmcp_mod.FastMCP = DummyFastMCP

    # Mark package structure
    mcp_mod.__path__ = []
    mcp_server_mod.__path__ = []

    monkeypatch.setitem(sys.modules, "mcp", mcp_mod)
    monkeypatch.setitem(sys.modules, "mcp.server", mcp_server_mod)
    monkeypatch.setitem(sys.modules, "mcp.server.fastmcp", fastmcp_mod)

    # ---- Fake config ----
    config_mod = types.ModuleType("config")
    config_mod.CACHE_BACKEND = "memory"
    config_mod.CACHE_CAPACITY = 7
    config_mod.CACHE_TTL_MS = 1234
    config_mod.CACHE_EXPIRY_CHECK_INTERVAL_MS = 60_000
    config_mod.CACHE_FILE_PATH = Path("unused.json")
    config_mod.CACHE_WRITE_THROUGH = True
    config_mod.LOG_LEVEL = "DEBUG"
    config_mod.REDIS_CONNECT_TIMEOUT = 5.0
    config_mod.REDIS_KEY_PREFIX = "cache:"
    config_mod.REDIS_URL = ""
    config_mod.S3_BUCKET = ""
    config_mod.S3_OBJECT_KEY = "cache.json"
    config_mod.AWS_REGION = ""
    config_mod.AWS_ENDPOINT_URL = ""
    monkeypatch.setitem(sys.modules, "config", config_mod)

    # ---- Fake logging setup ----
    logging_mod = types.ModuleType("core.logging_setup")

    def setup_logging(level="INFO"):
        captures["log_level"] = level

    logging_mod.setup_logging = setup_logging
    monkeypatch.setitem(sys.modules, "core.logging_setup", logging_mod)

    # ---- Fake tools ----
    tools_pkg = types.ModuleType("tools")
    tools_pkg.__path__ = []
    monkeypatch.setitem(sys.modules, "tools", tools_pkg)

    tools_cache_mod = types.ModuleType("tools.cache_tools")

    def register_cache_tools(mcp, *, cache):
        captures["register_cache_tools_calls"] = captures.get("register_cache_tools_calls", []) + [
            {"mcp": mcp, "cache": cache}
        ]

    tools_cache_mod.register = register_cache_tools
    monkeypatch.setitem(sys.modules, "tools.cache_tools", tools_cache_mod)


def _load_server_module(monkeypatch, captures: dict):
    _install_fake_modules(monkeypatch, captures)

    server_path = _find_server_py()
    mod_name = f"server_under_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, server_path)
    assert spec and spec.loader

    module = importlib.util.module_from_spec(spec)
    monkeypatch.setitem(sys.modules, mod_name, module)
    spec.loader.exec_module(module)
    return module


def test_server_builds_cache_from_config_and_registers_tools(monkeypatch):
    captures = {}
    module = _load_server_module(monkeypatch, captures)

    # FastMCP created with correct name and the cache lifespan
    assert captures["fastmcp_name"] == "lru-cache-mcp"
    assert captures["lifespan"] is module.lifespan
    mcp = captures["mcp_instance"]

    cache = module.cache
    assert isinstance(cache, ExpiringLRUCache)
    assert isinstance(cache.storage, MemoryStorage)
    assert cache.config.capacity == 7
    assert cache.config.ttl_ms == 1234

    # Tools receive the SAME injected cache instance
    calls = captures.get("register_cache_tools_calls", [])
    assert len(calls) == 1
    assert calls[0]["mcp"] is mcp
    assert calls[0]["cache"] is cache

    # main() configures logging and runs stdio transport
    module.main()
    assert captures["log_level"] == "DEBUG"
    assert captures["run_calls"] == [{"transport": "stdio"}]


@pytest.mark.asyncio
async def test_lifespan_starts_and_stops_cache(monkeypatch):
    captures = {}
    module = _load_server_module(monkeypatch, captures)
    cache = module.cache

    async with module.lifespan(captures["mcp_instance"]) as ctx:
        assert ctx["cache"] is cache
        assert cache.scheduler.running
        await cache.put("a", 1)

    assert cache.stopped
    assert not cache.scheduler.running
