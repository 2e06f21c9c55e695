"""Exceções compartilhadas pelo pacote."""
from __future__ import annotations


class NomeadorError(RuntimeError):
    """Erro base para falhas originadas no nomeador."""


class ReservedKeyError(NomeadorError, ValueError):
    """Handle inválido ou em conflito com as chaves de configuração."""


class InvalidTokenError(NomeadorError, ValueError):
    """Token de acesso com formato não reconhecido."""


class StoreUnavailableError(NomeadorError):
    """O armazenamento durável não respondeu à operação solicitada."""


__all__ = [
    "InvalidTokenError",
    "NomeadorError",
    "ReservedKeyError",
    "StoreUnavailableError",
]
