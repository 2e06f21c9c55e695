"""Regras para handles e para as chaves reservadas do armazenamento durável."""
from __future__ import annotations

import re

from .errors import ReservedKeyError

MAX_HANDLE_LENGTH = 39

#: Prefixo do namespace dos handles dentro do armazenamento durável.
HANDLE_KEY_PREFIX = "handle:"

ENABLED_KEY = "enabled"
TOKEN_KEY = "githubToken"
RATE_LIMIT_KEY = "rateLimitData"

RESERVED_KEYS = frozenset({ENABLED_KEY, TOKEN_KEY, RATE_LIMIT_KEY})

_HANDLE_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


def is_valid_handle(value: str | None) -> bool:
    """Indica se ``value`` segue a gramática de um handle."""

    if not value or len(value) > MAX_HANDLE_LENGTH:
        return False
    return bool(_HANDLE_RE.match(value))


def strip_sigil(text: str) -> str:
    return text[1:] if text.startswith("@") else text


def same_handle(left: str | None, right: str | None) -> bool:
    """Compara handles ignorando caixa e o ``@`` inicial."""

    if not left or not right:
        return False
    return strip_sigil(left.strip()).lower() == strip_sigil(right.strip()).lower()


def handle_key(handle: str) -> str:
    """Converte um handle na chave usada pelo armazenamento durável.

    As entradas de handles ficam em um namespace próprio, disjunto das
    chaves de configuração, de modo que um usuário chamado ``enabled`` nunca
    sobrescreve a flag global.
    """

    if not is_valid_handle(handle):
        raise ReservedKeyError(f"Handle inválido para o cache: {handle!r}")
    return f"{HANDLE_KEY_PREFIX}{handle}"


def handle_from_key(key: str) -> str | None:
    """Extrai o handle de uma chave do armazenamento, se ela pertencer ao namespace."""

    if key in RESERVED_KEYS or not key.startswith(HANDLE_KEY_PREFIX):
        return None
    return key[len(HANDLE_KEY_PREFIX):]


__all__ = [
    "ENABLED_KEY",
    "HANDLE_KEY_PREFIX",
    "MAX_HANDLE_LENGTH",
    "RATE_LIMIT_KEY",
    "RESERVED_KEYS",
    "TOKEN_KEY",
    "handle_from_key",
    "handle_key",
    "is_valid_handle",
    "same_handle",
    "strip_sigil",
]
