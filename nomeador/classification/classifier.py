"""Heurísticas que decidem se um nó HTML exibe um handle.

O classificador privilegia precisão: disparar em um nó que não é um
identificador corrompe a página, enquanto um nó ignorado apenas continua
mostrando o handle.
"""
from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import parse_qs, urlsplit

import soupsieve
from bs4 import Tag

from nomeador.domain.handles import (
    MAX_HANDLE_LENGTH,
    is_valid_handle,
    same_handle,
    strip_sigil,
)

#: Atributo gravado nos nós já anotados, carregando o handle original.
HANDLE_ATTRIBUTE = "data-nomeador-handle"

CANDIDATE_SELECTORS = ", ".join(
    [
        # Autores e colaboradores (apenas links de texto)
        'a.author:not([data-hovercard-type="organization"])',
        "a.commit-author",
        ".TimelineItem .commit-author",
        # Menções
        "a.user-mention",
        # Criadores de issues/PRs
        "a.author-link",
        # Responsáveis e revisores
        "a.assignee .css-truncate-target",
        "span.assignee",
        'a[itemprop="author"]',
        'a.Link--primary[href^="/"][href*="/commits?author="]',
        'a[data-hovercard-type="user"]:not(:has(img)):not(:has(svg))',
        'a[data-hovercard-url*="/users/"]:not(:has(img)):not(:has(svg))',
        f"[{HANDLE_ATTRIBUTE}]",
    ]
)

_CANDIDATES = soupsieve.compile(CANDIDATE_SELECTORS)

RESERVED_PATHS = frozenset(
    {
        "about",
        "account",
        "apps",
        "codespaces",
        "collections",
        "contact",
        "customer-stories",
        "dashboard",
        "enterprise",
        "events",
        "explore",
        "features",
        "issues",
        "join",
        "login",
        "logout",
        "marketplace",
        "new",
        "notifications",
        "organizations",
        "orgs",
        "pricing",
        "pulls",
        "readme",
        "search",
        "security",
        "sessions",
        "settings",
        "signup",
        "site",
        "sponsors",
        "team",
        "topics",
        "trending",
        "users",
    }
)

IDENTITY_HOSTS = frozenset({"github.com", "www.github.com"})

_ARTIFACT_SEGMENTS = frozenset({"commit", "blob", "tree", "compare"})
_HEX_SEGMENT_RE = re.compile(r"^(?=[0-9a-f]*\d)[0-9a-f]{7,40}$", re.IGNORECASE)

_NAVIGATION_TEXT_RE = re.compile(
    r"^(?:open|opened|closed|merged|draft|settings|edit|view|show|hide|more|less|"
    r"reply|follow|unfollow|sponsor|star|unstar|fork|watch|unwatch|subscribe|"
    r"unsubscribe|commits?|issues?|pulls?|pull requests?|discussions?|insights|"
    r"actions|projects|wiki|code|overview|repositories|packages|stars|"
    r"followers|following)$",
    re.IGNORECASE,
)
_COUNTER_RE = re.compile(r"(?:^|\s)\d[\d,.]*[kKmM]?$")
_AUTHOR_QUERY_RE = re.compile(r"(?:^|\s)author:(\S+)", re.IGNORECASE)

_INTERACTIVE_ROLES = frozenset({"button", "menuitem", "tab", "checkbox", "switch"})
_ROLE_CLASSES = frozenset({"user-mention", "assignee", "author"})
_TIMELINE_ITEM_CLASSES = ["TimelineItem", "js-commit", "Box-row"]
_AUTHORITATIVE_LINK = 'a[data-hovercard-type="user"][href], a.author[href]'


def find_candidates(root: Tag) -> List[Tag]:
    """Retorna ``root`` (se casar com o pré-filtro) e seus descendentes candidatos."""

    matches: List[Tag] = []
    if root.name != "[document]" and _CANDIDATES.match(root):
        matches.append(root)
    matches.extend(_CANDIDATES.select(root))
    return matches


def classify(node: Tag) -> Optional[str]:
    """Extrai o handle exibido por ``node`` ou retorna ``None``.

    A função é pura: apenas lê atributos e texto do nó e de seus vizinhos.
    """

    annotated = node.get(HANDLE_ATTRIBUTE)
    if isinstance(annotated, str) and is_valid_handle(annotated):
        return annotated

    text = _visible_text(node)
    if _is_disqualified(node, text):
        return None
    if _NAVIGATION_TEXT_RE.match(text) or _COUNTER_RE.search(text):
        return None

    href = node.get("href")
    segments: list[str] = []
    query = ""
    if isinstance(href, str) and href.strip():
        parts = urlsplit(href.strip())
        if parts.netloc and parts.netloc.lower() not in IDENTITY_HOSTS:
            return None
        segments = [segment for segment in parts.path.split("/") if segment]
        if segments and segments[0].lower() in RESERVED_PATHS:
            return None
        if any(_is_artifact_segment(segment) for segment in segments[1:]):
            return None
        query = parts.query

    classes = set(node.get("class") or ())
    if "commit-author" in classes:
        item = node.find_parent(class_=_TIMELINE_ITEM_CLASSES)
        if item is not None:
            return _from_timeline_item(node, item, text)

    candidate = _author_from_query(query) or (segments[0] if segments else None)
    if candidate and is_valid_handle(candidate) and same_handle(candidate, text):
        return candidate

    data_user = node.get("data-user")
    if isinstance(data_user, str) and is_valid_handle(data_user):
        return data_user

    if classes & _ROLE_CLASSES or (
        "css-truncate-target" in classes and node.find_parent(class_="assignee")
    ):
        own = strip_sigil(text)
        if is_valid_handle(own):
            return own

    return None


def _visible_text(node: Tag) -> str:
    return " ".join(node.get_text().split())


def _is_disqualified(node: Tag, text: str) -> bool:
    if node.name in ("img", "svg") or node.find(["img", "svg"]) is not None:
        return True
    if not text or len(text) > MAX_HANDLE_LENGTH + 1:
        return True
    if node.name == "button" or node.get("role") in _INTERACTIVE_ROLES:
        return True
    if node.find_parent("button") is not None:
        return True
    for ancestor in node.parents:
        for css_class in ancestor.get("class") or ():
            if "avatar" in css_class.lower():
                return True
    return False


def _is_artifact_segment(segment: str) -> bool:
    return segment.lower() in _ARTIFACT_SEGMENTS or bool(_HEX_SEGMENT_RE.match(segment))


def _author_from_query(query: str) -> Optional[str]:
    if not query:
        return None
    params = parse_qs(query)
    for value in params.get("author", ()):
        if value.strip():
            return value.strip()
    for value in params.get("q", ()):
        match = _AUTHOR_QUERY_RE.search(value)
        if match:
            return match.group(1)
    return None


def _from_timeline_item(node: Tag, item: Tag, text: str) -> Optional[str]:
    """Resolve atribuições de commit pelo link de usuário do mesmo item."""

    for link in item.select(_AUTHORITATIVE_LINK):
        if link is node:
            continue
        parts = urlsplit(str(link.get("href", "")))
        segments = [segment for segment in parts.path.split("/") if segment]
        if not segments or segments[0].lower() in RESERVED_PATHS:
            continue
        if is_valid_handle(segments[0]) and same_handle(segments[0], text):
            return segments[0]
    return None


__all__ = [
    "CANDIDATE_SELECTORS",
    "HANDLE_ATTRIBUTE",
    "IDENTITY_HOSTS",
    "RESERVED_PATHS",
    "classify",
    "find_candidates",
]
