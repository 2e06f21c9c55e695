"""API pública do domínio do nomeador.

Centraliza entidades, portas e regras de handles para que possam ser
importadas diretamente de ``nomeador.domain``.
"""

from .entities import CacheEntry, RateLimitSnapshot
from .errors import (
    InvalidTokenError,
    NomeadorError,
    ReservedKeyError,
    StoreUnavailableError,
)
from .handles import (
    ENABLED_KEY,
    MAX_HANDLE_LENGTH,
    RATE_LIMIT_KEY,
    RESERVED_KEYS,
    TOKEN_KEY,
    handle_from_key,
    handle_key,
    is_valid_handle,
    same_handle,
    strip_sigil,
)
from .ports import DurableStore, LabelResolver
from .tokens import authorization_header

__all__ = [
    "CacheEntry",
    "DurableStore",
    "ENABLED_KEY",
    "InvalidTokenError",
    "LabelResolver",
    "MAX_HANDLE_LENGTH",
    "NomeadorError",
    "RATE_LIMIT_KEY",
    "RESERVED_KEYS",
    "RateLimitSnapshot",
    "ReservedKeyError",
    "StoreUnavailableError",
    "TOKEN_KEY",
    "authorization_header",
    "handle_from_key",
    "handle_key",
    "is_valid_handle",
    "same_handle",
    "strip_sigil",
]
