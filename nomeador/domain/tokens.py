"""Formatos de token aceitos pela API remota."""
from __future__ import annotations

from .errors import InvalidTokenError

#: Tokens clássicos usam o esquema ``token``; tokens granulares usam ``Bearer``.
_SCHEMES = (("ghp_", "token"), ("github_pat_", "Bearer"))


def authorization_header(token: str) -> str:
    """Monta o valor do cabeçalho ``Authorization`` conforme o formato do token."""

    token = token.strip()
    for prefix, scheme in _SCHEMES:
        if token.startswith(prefix) and len(token) > len(prefix):
            return f"{scheme} {token}"
    raise InvalidTokenError(
        'Formato de token inválido: o token deve começar com "ghp_" ou "github_pat_"'
    )


__all__ = ["authorization_header"]
