"""Entidades do domínio: entradas de cache e limites de requisição."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class CacheEntry:
    """Associação entre um handle e o rótulo legível resolvido para ele."""

    #: Handle exatamente como foi extraído do documento.
    handle: str
    #: Rótulo exibido no lugar do handle; igual ao handle quando não há nome.
    label: str
    #: Instante da resolução em segundos desde a época Unix.
    resolved_at: float

    @property
    def has_label(self) -> bool:
        """Indica se existe um nome real conhecido para o handle."""

        return self.label != self.handle

    def to_mapping(self) -> dict[str, Any]:
        return {"label": self.label, "timestamp": self.resolved_at}

    @classmethod
    def from_mapping(cls, handle: str, payload: Any) -> "CacheEntry":
        """Reconstrói a entrada a partir do valor gravado no armazenamento.

        Valores legados gravados apenas como texto são aceitos com timestamp
        zero, o que os torna imediatamente elegíveis para revalidação.
        """

        if isinstance(payload, str):
            return cls(handle=handle, label=payload or handle, resolved_at=0.0)
        if not isinstance(payload, Mapping):
            raise ValueError(f"Entrada de cache inválida para '{handle}'")
        label = payload.get("label")
        if not isinstance(label, str) or not label:
            label = handle
        try:
            resolved_at = float(payload.get("timestamp") or 0.0)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Timestamp inválido para '{handle}'") from exc
        return cls(handle=handle, label=label, resolved_at=resolved_at)


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Últimos valores de limite de requisições informados pelo serviço remoto."""

    #: Quantidade total de requisições permitidas na janela.
    limit: int
    #: Requisições ainda disponíveis na janela atual.
    remaining: int
    #: Fim da janela em segundos desde a época Unix.
    reset_at: float

    def is_exhausted(self, now: float) -> bool:
        """Indica se a janela atual não comporta mais nenhuma requisição."""

        return self.remaining <= 0 and now < self.reset_at

    def to_mapping(self) -> dict[str, Any]:
        return {"limit": self.limit, "remaining": self.remaining, "reset": self.reset_at}

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "RateLimitSnapshot":
        return cls(
            limit=int(payload["limit"]),
            remaining=int(payload["remaining"]),
            reset_at=float(payload["reset"]),
        )

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitSnapshot | None":
        """Lê os cabeçalhos ``x-ratelimit-*``; retorna ``None`` quando ausentes."""

        try:
            limit = headers.get("x-ratelimit-limit")
            remaining = headers.get("x-ratelimit-remaining")
            reset = headers.get("x-ratelimit-reset")
            if limit is None or remaining is None or reset is None:
                return None
            return cls(limit=int(limit), remaining=int(remaining), reset_at=float(reset))
        except (TypeError, ValueError):
            return None


__all__ = ["CacheEntry", "RateLimitSnapshot"]
