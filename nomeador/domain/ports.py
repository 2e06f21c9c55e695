"""Portas que conectam o domínio aos adaptadores de infraestrutura."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping


class DurableStore(ABC):
    """Armazenamento chave/valor que sobrevive a reinícios do processo.

    Implementações devem sinalizar indisponibilidade levantando
    :class:`~nomeador.domain.errors.StoreUnavailableError`.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retornar o valor gravado em ``key`` ou ``None``."""

    @abstractmethod
    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        """Retornar apenas as chaves existentes dentre ``keys``."""

    @abstractmethod
    async def set_many(self, items: Mapping[str, Any]) -> None:
        """Gravar todos os pares informados."""

    @abstractmethod
    async def remove(self, keys: Iterable[str]) -> None:
        """Remover as chaves informadas, ignorando as inexistentes."""

    @abstractmethod
    async def items(self) -> dict[str, Any]:
        """Ler todas as chaves de uma vez."""

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})


class LabelResolver(ABC):
    """Resolve handles em rótulos legíveis consultando uma fonte remota."""

    @abstractmethod
    async def resolve(self, handle: str) -> str:
        """Retornar o rótulo do handle; nunca levanta exceções."""


__all__ = ["DurableStore", "LabelResolver"]
