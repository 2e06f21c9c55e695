"""Dependency container for a document annotation session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import httpx

from nomeador.application import (
    DocumentWatcher,
    SessionContext,
    StateController,
    UpdatePipeline,
)
from nomeador.domain.ports import DurableStore
from nomeador.infrastructure import (
    GitHubUsersClient,
    InMemoryDurableStore,
    JsonFileDurableStore,
    LiveDocument,
    MongoClientFactory,
)
from nomeador.settings import (
    get_api_base_url,
    get_batch_size,
    get_debounce_seconds,
    get_request_timeout,
    get_store_backend,
    get_store_path,
)
from nomeador.storage import CacheStore, SettingsStore


@dataclass
class Container:
    """Container exposing every component of one annotation session."""

    document: LiveDocument
    store: DurableStore
    context: SessionContext
    cache: CacheStore
    settings: SettingsStore
    resolver: GitHubUsersClient
    pipeline: UpdatePipeline
    watcher: DocumentWatcher
    controller: StateController

    async def aclose(self) -> None:
        await self.controller.stop()
        await self.resolver.aclose()


def build_store(backend: str | None = None) -> DurableStore:
    """Build the durable store configured for the current environment."""

    backend = backend or get_store_backend()
    if backend == "mongo":
        return MongoClientFactory().create_store()
    if backend == "memory":
        return InMemoryDurableStore()
    return JsonFileDurableStore(get_store_path())


def build_container(
    document: LiveDocument,
    *,
    store: DurableStore | None = None,
    client: httpx.AsyncClient | None = None,
    api_url: str | None = None,
    batch_size: int | None = None,
    debounce: float | None = None,
    clock: Callable[[], float] | None = None,
) -> Container:
    """Build the annotation session container for ``document``."""

    store = store or build_store()
    context = SessionContext()
    clock_kwargs = {"clock": clock} if clock is not None else {}
    cache = CacheStore(store, **clock_kwargs)
    settings = SettingsStore(store)
    resolver = GitHubUsersClient(
        cache,
        settings,
        base_url=api_url or get_api_base_url(),
        client=client,
        timeout=get_request_timeout(),
        **clock_kwargs,
    )
    pipeline = UpdatePipeline(
        context, cache, resolver, batch_size=batch_size or get_batch_size()
    )
    watcher = DocumentWatcher(
        document,
        pipeline,
        debounce=get_debounce_seconds() if debounce is None else debounce,
    )
    controller = StateController(context, settings, cache, pipeline, document, watcher)

    return Container(
        document=document,
        store=store,
        context=context,
        cache=cache,
        settings=settings,
        resolver=resolver,
        pipeline=pipeline,
        watcher=watcher,
        controller=controller,
    )
