"""Testes para o cache de rótulos em duas camadas."""
from __future__ import annotations

import asyncio
from typing import Any, Iterable, Mapping

import pytest

from nomeador.domain import DurableStore, ReservedKeyError, StoreUnavailableError
from nomeador.infrastructure import InMemoryDurableStore
from nomeador.storage import CacheStore, SettingsStore

NOW = 1_700_000_000.0
HOUR = 60 * 60
DAY = 24 * HOUR


class _UnavailableStore(DurableStore):
    """Armazenamento falso que sempre falha."""

    async def get(self, key: str) -> Any | None:
        raise StoreUnavailableError("fora do ar")

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        raise StoreUnavailableError("fora do ar")

    async def set_many(self, items: Mapping[str, Any]) -> None:
        raise StoreUnavailableError("fora do ar")

    async def remove(self, keys: Iterable[str]) -> None:
        raise StoreUnavailableError("fora do ar")

    async def items(self) -> dict[str, Any]:
        raise StoreUnavailableError("fora do ar")


def _cache(store: DurableStore | None = None) -> CacheStore:
    return CacheStore(store or InMemoryDurableStore(), clock=lambda: NOW)


def test_put_then_get_returns_label_and_timestamp() -> None:
    store = InMemoryDurableStore()
    cache = _cache(store)

    async def scenario():
        await cache.put("octocat", "The Octocat")
        return await cache.get("octocat"), await store.get("handle:octocat")

    entry, raw = asyncio.run(scenario())

    assert entry is not None
    assert entry.label == "The Octocat"
    assert entry.resolved_at == NOW
    assert raw == {"label": "The Octocat", "timestamp": NOW}
    assert cache.peek("octocat") == entry


def test_missing_label_is_stored_as_handle() -> None:
    cache = _cache()

    entry = asyncio.run(cache.put("nope", None))

    assert entry is not None
    assert entry.label == "nope"
    assert not entry.has_label


def test_get_populates_memory_from_durable_store() -> None:
    store = InMemoryDurableStore({"handle:torvalds": {"label": "Linus Torvalds", "timestamp": NOW - HOUR}})
    cache = _cache(store)

    assert cache.peek("torvalds") is None
    entry = asyncio.run(cache.get("torvalds"))

    assert entry is not None and entry.label == "Linus Torvalds"
    assert cache.peek("torvalds") == entry


def test_staleness_threshold_is_one_day() -> None:
    store = InMemoryDurableStore(
        {
            "handle:fresh": {"label": "Fresh", "timestamp": NOW - HOUR},
            "handle:stale": {"label": "Stale", "timestamp": NOW - 25 * HOUR},
        }
    )
    cache = _cache(store)

    async def scenario():
        return await cache.get("fresh"), await cache.get("stale")

    fresh, stale = asyncio.run(scenario())

    assert not cache.is_stale(fresh)
    assert cache.is_stale(stale)
    assert stale.label == "Stale"


def test_handle_named_like_a_setting_does_not_clobber_it() -> None:
    store = InMemoryDurableStore()
    cache = _cache(store)
    settings = SettingsStore(store)

    async def scenario():
        await settings.set_enabled(False)
        await cache.put("enabled", "Enabled Person")
        return await settings.get_enabled(), await cache.get("enabled"), await store.items()

    enabled, entry, raw = asyncio.run(scenario())

    assert enabled is False
    assert entry is not None and entry.label == "Enabled Person"
    assert raw["enabled"] is False
    assert raw["handle:enabled"]["label"] == "Enabled Person"


def test_put_rejects_invalid_handles() -> None:
    cache = _cache()

    with pytest.raises(ReservedKeyError):
        asyncio.run(cache.put("not valid!", "x"))


def test_store_failure_reads_as_miss_and_rolls_back_writes() -> None:
    cache = _cache(_UnavailableStore())

    async def scenario():
        return await cache.get("octocat"), await cache.put("octocat", "The Octocat")

    found, written = asyncio.run(scenario())

    assert found is None
    assert written is None
    assert cache.peek("octocat") is None


def test_unavailable_store_loads_default_settings() -> None:
    loaded = asyncio.run(SettingsStore(_UnavailableStore()).load())

    assert (loaded.enabled, loaded.token, loaded.rate_limit) == (True, None, None)


def test_preload_loads_only_handle_entries() -> None:
    store = InMemoryDurableStore(
        {
            "enabled": True,
            "githubToken": "ghp_abc",
            "handle:octocat": {"label": "The Octocat", "timestamp": NOW},
            "handle:legacy": "Legacy Name",
            "handle:broken": 42,
        }
    )
    cache = _cache(store)

    loaded = asyncio.run(cache.preload())

    assert loaded == 2
    assert cache.peek("octocat").label == "The Octocat"
    legacy = cache.peek("legacy")
    assert legacy.label == "Legacy Name"
    assert cache.is_stale(legacy)
    assert cache.peek("enabled") is None


def test_purge_expired_removes_old_and_malformed_entries() -> None:
    store = InMemoryDurableStore(
        {
            "enabled": False,
            "rateLimitData": {"limit": 60, "remaining": 10, "reset": NOW},
            "handle:old": {"label": "Old", "timestamp": NOW - 8 * DAY},
            "handle:recent": {"label": "Recent", "timestamp": NOW - DAY},
            "handle:broken": ["x"],
        }
    )
    cache = _cache(store)

    async def scenario():
        result = await cache.purge_expired()
        return result, await store.items()

    result, remaining = asyncio.run(scenario())

    assert result.scanned == 3
    assert result.removed == 2
    assert set(result.to_summary()) == {"scanned", "removed", "elapsed_ms"}
    assert set(remaining) == {"enabled", "rateLimitData", "handle:recent"}


def test_clear_drops_labels_but_keeps_settings() -> None:
    store = InMemoryDurableStore(
        {
            "enabled": True,
            "githubToken": "ghp_abc",
            "handle:octocat": {"label": "The Octocat", "timestamp": NOW},
        }
    )
    cache = _cache(store)

    async def scenario():
        await cache.preload()
        removed = await cache.clear()
        return removed, await store.items()

    removed, remaining = asyncio.run(scenario())

    assert removed == 1
    assert remaining == {"enabled": True, "githubToken": "ghp_abc"}
    assert cache.peek("octocat") is None
