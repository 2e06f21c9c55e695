"""Controle da flag global e das mensagens vindas da interface."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from nomeador.domain.errors import StoreUnavailableError
from nomeador.infrastructure.document import LiveDocument
from nomeador.storage import CacheStore, SettingsStore

from .context import SessionContext
from .messages import (
    AckResponse,
    GetStateMessage,
    RefreshCacheMessage,
    StateResponse,
    ToggleMessage,
    control_message_adapter,
)
from .pipeline import DocumentWatcher, UpdatePipeline


class StateController:
    """Coordena inicialização, liga/desliga e atualização do cache.

    Cada operação deixa o documento consistente após uma única passada de
    renderização: a renderização sempre parte do estado atual, então uma
    alternância posterior substitui o efeito de uma anterior.
    """

    def __init__(
        self,
        context: SessionContext,
        settings: SettingsStore,
        cache: CacheStore,
        pipeline: UpdatePipeline,
        document: LiveDocument,
        watcher: DocumentWatcher,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._settings = settings
        self._cache = cache
        self._pipeline = pipeline
        self._document = document
        self._watcher = watcher
        self._log = logger or logging.getLogger("nomeador.controller")

    @property
    def enabled(self) -> bool:
        return self._context.enabled

    async def start(self) -> None:
        """Lê a flag, pré-carrega o cache, varre a página e passa a observá-la."""

        self._context.enabled = await self._settings.get_enabled()
        loaded = await self._cache.preload()
        await self._pipeline.process_page(self._document)
        self._watcher.start()
        self._log.info(
            "nomeador inicializado (%s, %d rótulos em cache)",
            "ativo" if self._context.enabled else "inativo",
            loaded,
        )

    async def stop(self) -> None:
        self._watcher.stop()
        await self._pipeline.idle()

    async def set_enabled(self, enabled: bool) -> None:
        """Persiste a flag, reaplica o estado e varre a página novamente."""

        self._context.enabled = bool(enabled)
        try:
            await self._settings.set_enabled(self._context.enabled)
        except StoreUnavailableError as exc:
            self._log.warning("Flag global não persistida: %s", exc)
        self._pipeline.render_all()
        await self._pipeline.process_page(self._document)
        self._log.info("Exibição de nomes reais %s", "ativada" if enabled else "desativada")

    async def refresh_cache(self) -> None:
        """Descarta rótulos e marcadores e reprocessa a página inteira."""

        self._pipeline.reset_markers()
        try:
            removed = await self._cache.clear()
        except StoreUnavailableError as exc:
            self._cache.clear_memory()
            self._log.warning("Cache durável não foi limpo: %s", exc)
        else:
            self._log.info("%d rótulos descartados do cache", removed)
        await self._pipeline.process_page(self._document)

    def get_state(self) -> dict[str, bool]:
        return StateResponse(enabled=self._context.enabled).model_dump()

    async def handle_message(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Processa uma mensagem de controle e responde após concluir o trabalho."""

        try:
            message = control_message_adapter.validate_python(dict(payload))
        except ValidationError as exc:
            self._log.warning("Mensagem de controle inválida: %s", payload)
            return AckResponse(success=False, error=str(exc)).model_dump(exclude_none=True)

        if isinstance(message, ToggleMessage):
            await self.set_enabled(message.enabled)
        elif isinstance(message, GetStateMessage):
            return self.get_state()
        elif isinstance(message, RefreshCacheMessage):
            await self.refresh_cache()
        return AckResponse().model_dump(exclude_none=True)

    async def idle(self) -> None:
        """Aguarda drenagens pendentes e revalidações em segundo plano."""

        await self._watcher.flush()
        await self._pipeline.idle()


__all__ = ["StateController"]
