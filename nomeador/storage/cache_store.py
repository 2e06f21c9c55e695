"""Cache em duas camadas (memória + armazenamento durável) para rótulos."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from nomeador.domain.entities import CacheEntry
from nomeador.domain.errors import StoreUnavailableError
from nomeador.domain.handles import handle_from_key, handle_key, is_valid_handle
from nomeador.domain.ports import DurableStore

#: Entradas mais antigas que isso são servidas, mas revalidadas em segundo plano.
REVALIDATE_AFTER_SECONDS = 24 * 60 * 60
#: Entradas mais antigas que isso são removidas pela manutenção periódica.
RETAIN_FOR_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class PurgeResult:
    """Resumo de uma execução de :meth:`CacheStore.purge_expired`."""

    scanned: int
    removed: int
    elapsed_ms: int

    def to_summary(self) -> dict[str, int]:
        return {
            "scanned": self.scanned,
            "removed": self.removed,
            "elapsed_ms": self.elapsed_ms,
        }


class CacheStore:
    """Mantém os rótulos resolvidos em memória e no armazenamento durável.

    A camada de memória é consultada de forma síncrona; a camada durável só é
    lida em caso de falta e popula a memória quando encontra a entrada. Falhas
    do armazenamento durável são tratadas como falta de cache.
    """

    def __init__(
        self,
        durable: DurableStore,
        *,
        clock: Callable[[], float] = time.time,
        revalidate_after: float = REVALIDATE_AFTER_SECONDS,
        retain_for: float = RETAIN_FOR_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._durable = durable
        self._clock = clock
        self._revalidate_after = revalidate_after
        self._retain_for = retain_for
        self._memory: dict[str, CacheEntry] = {}
        self._log = logger or logging.getLogger("nomeador.cache")

    def now(self) -> float:
        return self._clock()

    def peek(self, handle: str) -> CacheEntry | None:
        """Consulta apenas a camada de memória."""

        return self._memory.get(handle)

    async def get(self, handle: str) -> CacheEntry | None:
        """Busca a entrada na memória e, se ausente, no armazenamento durável."""

        entry = self._memory.get(handle)
        if entry is not None:
            return entry
        if not is_valid_handle(handle):
            return None
        try:
            payload = await self._durable.get(handle_key(handle))
        except StoreUnavailableError as exc:
            self._log.warning("Cache durável indisponível ao ler '%s': %s", handle, exc)
            return None
        if payload is None:
            return None
        try:
            entry = CacheEntry.from_mapping(handle, payload)
        except ValueError as exc:
            self._log.debug("Ignorando entrada inválida para '%s': %s", handle, exc)
            return None
        current = self._memory.get(handle)
        if current is not None and current.resolved_at >= entry.resolved_at:
            return current
        self._memory[handle] = entry
        return entry

    async def put(self, handle: str, label: str | None) -> CacheEntry | None:
        """Grava o rótulo nas duas camadas com o instante atual.

        Levanta :class:`~nomeador.domain.errors.ReservedKeyError` para handles
        inválidos. Quando a escrita durável falha, a escrita em memória é
        desfeita e ``None`` é retornado.
        """

        key = handle_key(handle)
        entry = CacheEntry(handle=handle, label=label or handle, resolved_at=self._clock())
        previous = self._memory.get(handle)
        self._memory[handle] = entry
        try:
            await self._durable.set(key, entry.to_mapping())
        except StoreUnavailableError as exc:
            self._log.warning("Não foi possível gravar '%s' no cache durável: %s", handle, exc)
            if self._memory.get(handle) is entry:
                if previous is None:
                    del self._memory[handle]
                else:
                    self._memory[handle] = previous
            return None
        return entry

    def is_stale(self, entry: CacheEntry, now: float | None = None) -> bool:
        current = self._clock() if now is None else now
        return current - entry.resolved_at > self._revalidate_after

    async def preload(self) -> int:
        """Reconstrói a camada de memória a partir do armazenamento durável."""

        try:
            items = await self._durable.items()
        except StoreUnavailableError as exc:
            self._log.warning("Pré-carga do cache ignorada: %s", exc)
            return 0
        loaded = 0
        for key, payload in items.items():
            handle = handle_from_key(key)
            if handle is None:
                continue
            try:
                entry = CacheEntry.from_mapping(handle, payload)
            except ValueError:
                continue
            self._memory.setdefault(handle, entry)
            loaded += 1
        self._log.debug("%d entradas carregadas do cache durável", loaded)
        return loaded

    async def purge_expired(self) -> PurgeResult:
        """Remove entradas duráveis mais antigas que o período de retenção.

        Chaves reservadas de configuração nunca são tocadas.
        """

        started = time.perf_counter()
        items = await self._durable.items()
        now = self._clock()
        scanned = 0
        expired: list[str] = []
        for key, payload in items.items():
            handle = handle_from_key(key)
            if handle is None:
                continue
            scanned += 1
            if self._is_expired(handle, payload, now):
                expired.append(key)
                self._memory.pop(handle, None)
        if expired:
            await self._durable.remove(expired)
            self._log.info("%d entradas expiradas removidas do cache", len(expired))
        return PurgeResult(
            scanned=scanned,
            removed=len(expired),
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )

    def clear_memory(self) -> None:
        self._memory.clear()

    async def clear(self) -> int:
        """Descarta todos os rótulos, mantendo as chaves de configuração."""

        self._memory.clear()
        items = await self._durable.items()
        keys = [key for key in items if handle_from_key(key) is not None]
        if keys:
            await self._durable.remove(keys)
        return len(keys)

    def _is_expired(self, handle: str, payload: Any, now: float) -> bool:
        try:
            entry = CacheEntry.from_mapping(handle, payload)
        except ValueError:
            return True
        return now - entry.resolved_at > self._retain_for


__all__ = [
    "CacheStore",
    "PurgeResult",
    "REVALIDATE_AFTER_SECONDS",
    "RETAIN_FOR_SECONDS",
]
