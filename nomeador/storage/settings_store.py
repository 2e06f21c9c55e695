"""Acesso às chaves reservadas de configuração no armazenamento durável."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from nomeador.domain.entities import RateLimitSnapshot
from nomeador.domain.errors import StoreUnavailableError
from nomeador.domain.handles import ENABLED_KEY, RATE_LIMIT_KEY, TOKEN_KEY
from nomeador.domain.ports import DurableStore
from nomeador.domain.tokens import authorization_header


@dataclass(frozen=True)
class StoredSettings:
    """Fotografia das chaves reservadas lida de uma só vez."""

    #: Flag global de exibição de nomes reais.
    enabled: bool
    #: Token de acesso já normalizado, quando configurado.
    token: str | None
    #: Último limite de requisições observado.
    rate_limit: RateLimitSnapshot | None


class SettingsStore:
    """Lê e grava a flag global, o token de acesso e o último limite observado.

    Leituras que falham por indisponibilidade do armazenamento retornam o
    valor padrão; escritas propagam :class:`StoreUnavailableError`.
    """

    def __init__(self, durable: DurableStore, *, logger: logging.Logger | None = None) -> None:
        self._durable = durable
        self._log = logger or logging.getLogger("nomeador.settings")

    async def load(self) -> StoredSettings:
        """Lê as três chaves reservadas em uma única consulta ao armazenamento."""

        keys = (ENABLED_KEY, TOKEN_KEY, RATE_LIMIT_KEY)
        try:
            values = await self._durable.get_many(keys)
        except StoreUnavailableError as exc:
            self._log.warning("Configurações indisponíveis: %s", exc)
            values = {}
        return StoredSettings(
            enabled=_as_enabled(values.get(ENABLED_KEY)),
            token=_as_token(values.get(TOKEN_KEY)),
            rate_limit=_as_rate_limit(values.get(RATE_LIMIT_KEY)),
        )

    async def get_enabled(self) -> bool:
        return _as_enabled(await self._read(ENABLED_KEY))

    async def set_enabled(self, enabled: bool) -> None:
        await self._durable.set(ENABLED_KEY, bool(enabled))

    async def get_token(self) -> str | None:
        return _as_token(await self._read(TOKEN_KEY))

    async def set_token(self, token: str) -> None:
        """Valida o formato do token antes de gravá-lo."""

        authorization_header(token)
        await self._durable.set(TOKEN_KEY, token.strip())

    async def remove_token(self) -> None:
        await self._durable.remove([TOKEN_KEY])

    async def get_rate_limit(self) -> RateLimitSnapshot | None:
        return _as_rate_limit(await self._read(RATE_LIMIT_KEY))

    async def set_rate_limit(self, snapshot: RateLimitSnapshot) -> None:
        await self._durable.set(RATE_LIMIT_KEY, snapshot.to_mapping())

    async def _read(self, key: str) -> Any | None:
        try:
            return await self._durable.get(key)
        except StoreUnavailableError as exc:
            self._log.warning("Configuração '%s' indisponível: %s", key, exc)
            return None


def _as_enabled(value: Any) -> bool:
    return value if isinstance(value, bool) else True


def _as_token(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_rate_limit(value: Any) -> RateLimitSnapshot | None:
    if not isinstance(value, dict):
        return None
    try:
        return RateLimitSnapshot.from_mapping(value)
    except (KeyError, TypeError, ValueError):
        return None


__all__ = ["SettingsStore", "StoredSettings"]
