"""Cliente HTTP que resolve handles em nomes reais pela API de usuários."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

import httpx

from nomeador.domain.entities import RateLimitSnapshot
from nomeador.domain.errors import InvalidTokenError, StoreUnavailableError
from nomeador.domain.handles import is_valid_handle
from nomeador.domain.ports import LabelResolver
from nomeador.domain.tokens import authorization_header
from nomeador.storage import CacheStore, SettingsStore

DEFAULT_API_URL = "https://api.github.com"

_DEFAULT_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
    "User-Agent": "nomeador",
}


class GitHubUsersClient(LabelResolver):
    """Consulta ``GET /users/{handle}`` e grava o resultado no cache.

    Qualquer falha (rede, autenticação, limite de requisições ou resposta
    malformada) degrada para o próprio handle, que também é gravado no cache
    para que falhas repetidas virem acertos de cache. Quando o cache já tem
    um nome real para o handle, a falha devolve esse nome e não o sobrescreve.
    """

    def __init__(
        self,
        cache: CacheStore,
        settings: SettingsStore,
        *,
        base_url: str = DEFAULT_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | None = None,
    ) -> None:
        """Configura o cliente HTTP e as dependências de cache e configuração.

        Parameters
        ----------
        cache:
            Cache de rótulos onde cada resultado é gravado antes de retornar.
        settings:
            Fonte do token de acesso e destino do último limite observado.
        base_url:
            URL raiz da API remota.
        client:
            Instância de :class:`httpx.AsyncClient` reutilizável. Quando
            omitida, o cliente cria e gerencia uma instância própria.
        timeout:
            Tempo máximo de espera quando o cliente interno é criado.
        """

        self._base_url = base_url.rstrip("/")
        self._cache = cache
        self._settings = settings
        self._clock = clock
        self._log = logger or logging.getLogger("nomeador.resolver")

        managed_client = client or httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout, headers=_DEFAULT_HEADERS
        )
        owns_client = client is None

        self._client: httpx.AsyncClient = managed_client
        """Cliente HTTP usado para efetuar chamadas à API."""

        self._owns_client: bool = owns_client
        """Indica se o cliente HTTP é gerenciado internamente."""

    async def resolve(self, handle: str) -> str:
        """Retorna o nome real do handle ou o próprio handle; nunca levanta."""

        if not is_valid_handle(handle):
            self._log.debug("Handle inválido ignorado: %r", handle)
            return handle

        snapshot = await self._settings.get_rate_limit()
        if snapshot is not None and snapshot.is_exhausted(self._clock()):
            self._log.debug(
                "Limite esgotado até %s; '%s' exibido sem consulta",
                _format_epoch(snapshot.reset_at),
                handle,
            )
            return handle

        headers = dict(_DEFAULT_HEADERS)
        token = await self._settings.get_token()
        if token:
            try:
                headers["Authorization"] = authorization_header(token)
            except InvalidTokenError as exc:
                self._log.warning("Token ignorado: %s", exc)
                token = None

        try:
            response = await self._client.get(f"{self._base_url}/users/{handle}", headers=headers)
        except httpx.HTTPError as exc:
            self._log.error("Falha de rede ao consultar '%s': %s", handle, exc)
            return await self._degrade(handle)

        await self._record_rate_limit(response)

        if response.status_code == 401:
            self._log.warning(
                "Token recusado pela API (401) ao consultar '%s'. Verifique o token configurado.",
                handle,
            )
            return await self._degrade(handle)
        if response.status_code in (403, 429):
            if token:
                self._log.warning(
                    "Limite de requisições atingido (%s) mesmo com token ao consultar '%s'.",
                    response.status_code,
                    handle,
                )
            else:
                self._log.warning(
                    "Limite de requisições atingido (%s) sem token. "
                    "Considere configurar um token de acesso.",
                    response.status_code,
                )
            return await self._degrade(handle)
        if not response.is_success:
            self._log.warning(
                "Consulta de '%s' retornou status %s", handle, response.status_code
            )
            return await self._degrade(handle)

        try:
            payload = response.json()
        except ValueError as exc:
            self._log.error("Resposta inválida para '%s': %s", handle, exc)
            return await self._degrade(handle)
        if not isinstance(payload, dict):
            self._log.error("Resposta inesperada para '%s': era esperado um objeto", handle)
            return await self._degrade(handle)

        name = payload.get("name")
        label = name.strip() if isinstance(name, str) and name.strip() else handle
        self._log.debug("'%s' resolvido como '%s'", handle, label)
        return await self._remember(handle, label)

    async def aclose(self) -> None:
        """Fecha o cliente HTTP quando a instância é de responsabilidade local."""

        if self._owns_client:
            await self._client.aclose()

    async def _remember(self, handle: str, label: str) -> str:
        await self._cache.put(handle, label)
        return label

    async def _degrade(self, handle: str) -> str:
        """Trata uma falha de consulta sem descartar um nome real já conhecido.

        Uma revalidação que falha mantém a entrada anterior intacta (inclusive
        o timestamp, para que a próxima leitura tente de novo); apenas handles
        sem nome conhecido passam a ter o próprio handle gravado no cache.
        """

        known = await self._cache.get(handle)
        if known is not None and known.has_label:
            self._log.debug("Mantendo rótulo anterior de '%s' após falha", handle)
            return known.label
        return await self._remember(handle, handle)

    async def _record_rate_limit(self, response: httpx.Response) -> None:
        snapshot = RateLimitSnapshot.from_headers(response.headers)
        if snapshot is None:
            return
        try:
            await self._settings.set_rate_limit(snapshot)
        except StoreUnavailableError as exc:
            self._log.debug("Limite de requisições não registrado: %s", exc)


def _format_epoch(value: float) -> str:
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


__all__ = ["DEFAULT_API_URL", "GitHubUsersClient"]
