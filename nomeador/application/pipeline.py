"""Pipeline incremental: classificação, consulta ao cache, resolução e exibição."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from bs4 import Tag

from nomeador.classification import classify, find_candidates
from nomeador.domain.ports import LabelResolver
from nomeador.infrastructure.document import LiveDocument, Subscription
from nomeador.storage import CacheStore

from .context import Marker, SessionContext
from .display import DisplayWriter

DEFAULT_BATCH_SIZE = 20
DEFAULT_DEBOUNCE_SECONDS = 0.1


class UpdatePipeline:
    """Leva cada nó de *não visto* até *exibindo o rótulo*.

    O estado por nó é: não visto → classificado (marcador anexado) → exibindo
    o handle → exibindo o rótulo. Nós recusados pelo classificador não
    recebem marcador. A renderização sempre parte do estado atual (flag
    global e cache em memória), o que a torna idempotente.
    """

    def __init__(
        self,
        context: SessionContext,
        cache: CacheStore,
        resolver: LabelResolver,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        writer: DisplayWriter | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size deve ser maior que zero")
        self._context = context
        self._cache = cache
        self._resolver = resolver
        self._batch_size = batch_size
        self._writer = writer or DisplayWriter()
        self._log = logger or logging.getLogger("nomeador.pipeline")
        # Consultas remotas em andamento, compartilhadas por handle.
        self._inflight: dict[str, asyncio.Task[str]] = {}
        # Revalidações disparadas em segundo plano.
        self._background: set[asyncio.Task[None]] = set()
        self._revalidating: set[str] = set()

    async def process_page(self, document: LiveDocument) -> None:
        """Processa todos os candidatos presentes no documento."""

        await self.process_nodes(find_candidates(document.root))

    async def process_nodes(self, nodes: Iterable[Tag]) -> None:
        """Processa os nós em lotes concorrentes, cedendo o loop entre lotes."""

        pending = list(nodes)
        for start in range(0, len(pending), self._batch_size):
            batch = pending[start : start + self._batch_size]
            await asyncio.gather(*(self._safe_update(node) for node in batch))
            if start + self._batch_size < len(pending):
                await asyncio.sleep(0)

    async def update_node(self, node: Tag) -> None:
        markers = self._context.markers
        marker = markers.get(node)
        if marker is None:
            handle = classify(node)
            if handle is None:
                return
            marker = markers.attach(node, handle)
            self._writer.render(node, marker, handle)

        if not self._context.enabled:
            self._render(node, marker)
            return

        handle = marker.handle
        entry = self._cache.peek(handle) or await self._cache.get(handle)
        if entry is not None:
            self._render(node, marker, entry.label)
            if self._cache.is_stale(entry):
                self._revalidate(handle)
            return

        label = await self._lookup(handle)
        self._render(node, marker, label)

    def render_all(self) -> None:
        """Reaplica o estado atual em todos os nós marcados."""

        for node, marker in self._context.markers.live_items():
            self._render(node, marker)

    def reset_markers(self) -> None:
        """Volta todos os nós marcados para o handle e descarta os marcadores."""

        for node, marker in self._context.markers.live_items():
            self._writer.render(node, marker, marker.handle)
        self._context.markers.clear()

    async def idle(self) -> None:
        """Aguarda o término das revalidações em segundo plano."""

        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _render(self, node: Tag, marker: Marker, label: Optional[str] = None) -> None:
        if getattr(node, "decomposed", False):
            return
        if not self._context.enabled:
            shown = marker.handle
        else:
            entry = self._cache.peek(marker.handle)
            shown = entry.label if entry is not None else (label or marker.handle)
        self._writer.render(node, marker, shown)

    async def _lookup(self, handle: str) -> str:
        task = self._inflight.get(handle)
        if task is None:
            task = asyncio.ensure_future(self._resolver.resolve(handle))
            self._inflight[handle] = task

            def _done(finished: asyncio.Task[str], handle: str = handle) -> None:
                if self._inflight.get(handle) is finished:
                    del self._inflight[handle]

            task.add_done_callback(_done)
        return await asyncio.shield(task)

    def _revalidate(self, handle: str) -> None:
        if handle in self._revalidating or handle in self._inflight:
            return
        self._revalidating.add(handle)
        self._log.debug("Revalidando '%s' em segundo plano", handle)
        task = asyncio.ensure_future(self._refresh_handle(handle))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_handle(self, handle: str) -> None:
        try:
            label = await self._lookup(handle)
        finally:
            self._revalidating.discard(handle)
        for node, marker in self._context.markers.nodes_for(handle):
            self._render(node, marker, label)

    async def _safe_update(self, node: Tag) -> None:
        try:
            await self.update_node(node)
        except Exception:  # pragma: no cover - logging defensivo
            self._log.exception("Falha ao atualizar nó <%s>", node.name)


class DocumentWatcher:
    """Observa o documento e drena os nós adicionados após um intervalo de calma.

    Rajadas de notificações dentro da janela de *debounce* resultam em uma
    única drenagem. Os nós são acompanhados mesmo com a flag global
    desligada; o pipeline decide por nó se resolve ou apenas exibe o handle.
    As mutações do documento precisam acontecer na thread do loop.
    """

    def __init__(
        self,
        document: LiveDocument,
        pipeline: UpdatePipeline,
        *,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._document = document
        self._pipeline = pipeline
        self._debounce = debounce
        self._log = logger or logging.getLogger("nomeador.watcher")
        self._pending: dict[int, Tag] = {}
        self._timer: asyncio.TimerHandle | None = None
        self._drains: set[asyncio.Task[None]] = set()
        self._subscription: Subscription | None = None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def start(self) -> None:
        if self._subscription is None:
            self._subscription = self._document.subscribe(self._on_nodes_added)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def flush(self) -> None:
        """Drena imediatamente os pendentes e aguarda as drenagens em curso."""

        if self._timer is not None:
            self._timer.cancel()
            self._drain()
        while self._drains:
            await asyncio.gather(*list(self._drains), return_exceptions=True)

    def _on_nodes_added(self, nodes: list[Tag]) -> None:
        for node in nodes:
            for candidate in find_candidates(node):
                self._pending.setdefault(id(candidate), candidate)
        if not self._pending:
            return
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._debounce, self._drain)

    def _drain(self) -> None:
        self._timer = None
        nodes = list(self._pending.values())
        self._pending.clear()
        if not nodes:
            return
        self._log.debug("Drenando %d nós adicionados", len(nodes))
        task = asyncio.ensure_future(self._pipeline.process_nodes(nodes))
        self._drains.add(task)
        task.add_done_callback(self._drains.discard)


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DocumentWatcher",
    "UpdatePipeline",
]
