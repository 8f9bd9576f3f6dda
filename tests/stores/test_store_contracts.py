"""Contract tests for KVStore implementations.

These tests verify that every bundled store satisfies the capability the
cached function wrapper relies on, and works end to end behind it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from kvmemo.protocol import MISSING, KVStore, has_capabilities
from kvmemo.stores.cloudflare import CloudflareKVStore
from kvmemo.stores.memory import MemoryKVStore
from kvmemo.stores.sqlite import SqliteKVStore
from kvmemo.wrapper import configure

if TYPE_CHECKING:
    from pathlib import Path


def _cloudflare_store() -> CloudflareKVStore:
    data: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        key = request.url.path.rsplit("/", 1)[-1]
        if request.method == "GET":
            return httpx.Response(200, text=data[key]) if key in data else httpx.Response(404)
        if request.method == "PUT":
            data[key] = request.content.decode("utf-8")
        else:
            data.pop(key, None)
        return httpx.Response(200)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CloudflareKVStore("acc", "ns", "tok", client=client, retry=None)


# All KVStore implementations
KV_STORES: list[str] = ["memory", "sqlite", "cloudflare"]


@pytest.fixture(params=KV_STORES)
def kv_store(request: pytest.FixtureRequest, tmp_path: Path) -> KVStore:
    """Parametrized fixture that yields each KVStore implementation."""
    if request.param == "memory":
        return MemoryKVStore()
    if request.param == "sqlite":
        return SqliteKVStore(tmp_path / "contract.db")
    if request.param == "cloudflare":
        return _cloudflare_store()
    raise ValueError(f"Unknown KV store type: {request.param}")


class TestKVStoreContract:
    def test_has_capabilities(self, kv_store: KVStore) -> None:
        assert has_capabilities(kv_store)

    async def test_get_returns_none_for_missing_key(self, kv_store: KVStore) -> None:
        assert await kv_store.get("nonexistent_key") is None

    async def test_put_and_get_roundtrip(self, kv_store: KVStore) -> None:
        await kv_store.put("test_key", "test_value", 3600)
        assert await kv_store.get("test_key") == "test_value"

    async def test_delete_removes_value(self, kv_store: KVStore) -> None:
        await kv_store.put("test_key", "test_value", 3600)
        await kv_store.delete("test_key")
        assert await kv_store.get("test_key") is None

    async def test_behind_cached_function(self, kv_store: KVStore) -> None:
        calls: list[int] = []

        async def compute(n: int) -> dict[str, int]:
            calls.append(n)
            return {"n": n, "square": n * n}

        cached = configure(ttl=60, prefix="contract:", resolver=lambda _: kv_store)(
            compute, key=lambda n: f"square:{n}"
        )
        assert await cached(3) == {"n": 3, "square": 9}
        assert await cached(3) == {"n": 3, "square": 9}
        assert calls == [3]

        await cached.clear(3)
        assert await cached.get(3) is MISSING
