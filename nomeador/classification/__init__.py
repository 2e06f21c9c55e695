"""Classificação de nós HTML que exibem handles."""

from .classifier import (
    CANDIDATE_SELECTORS,
    HANDLE_ATTRIBUTE,
    RESERVED_PATHS,
    classify,
    find_candidates,
)

__all__ = [
    "CANDIDATE_SELECTORS",
    "HANDLE_ATTRIBUTE",
    "RESERVED_PATHS",
    "classify",
    "find_candidates",
]
