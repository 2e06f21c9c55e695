"""Documento HTML vivo que notifica a inserção de novos nós."""
from __future__ import annotations

import logging
from typing import Callable, List

from bs4 import BeautifulSoup, Tag

log = logging.getLogger(__name__)

NodesAddedListener = Callable[[List[Tag]], None]


class Subscription:
    """Inscrição ativa em um :class:`LiveDocument`."""

    def __init__(self, document: "LiveDocument", listener: NodesAddedListener) -> None:
        self._document = document
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._document._detach(self._listener)
            self._active = False


class LiveDocument:
    """Envolve uma árvore BeautifulSoup e publica lotes de nós adicionados.

    Toda inserção feita por :meth:`insert_html` gera exatamente uma
    notificação contendo os elementos de topo adicionados; os ouvintes são
    responsáveis por percorrer os descendentes.
    """

    def __init__(self, html: str = "", *, parser: str = "html.parser") -> None:
        self._parser = parser
        self._soup = BeautifulSoup(html, parser)
        self._listeners: list[NodesAddedListener] = []

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    @property
    def root(self) -> Tag:
        """Elemento raiz observado: o ``body`` quando existir."""

        return self._soup.body or self._soup

    def select(self, query: str) -> list[Tag]:
        return self._soup.select(query)

    def subscribe(self, listener: NodesAddedListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def insert_html(self, html: str, parent: Tag | None = None) -> list[Tag]:
        """Anexa o fragmento ao ``parent`` (ou à raiz) e notifica os ouvintes."""

        target = parent if parent is not None else self.root
        fragment = BeautifulSoup(html, self._parser)
        source = fragment.body or fragment
        added: list[Tag] = []
        for child in list(source.contents):
            node = child.extract()
            target.append(node)
            if isinstance(node, Tag):
                added.append(node)
        if added:
            self._notify(added)
        return added

    def remove(self, node: Tag) -> None:
        """Remove e destrói o nó; marcadores associados deixam de valer."""

        node.decompose()

    def contains(self, node: Tag) -> bool:
        if getattr(node, "decomposed", False):
            return False
        return any(parent is self._soup for parent in node.parents)

    def render(self) -> str:
        return str(self._soup)

    def _notify(self, added: list[Tag]) -> None:
        for listener in list(self._listeners):
            try:
                listener(list(added))
            except Exception:  # pragma: no cover - logging defensivo
                log.exception("Falha ao notificar ouvinte de inserção de nós")

    def _detach(self, listener: NodesAddedListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass


__all__ = ["LiveDocument", "NodesAddedListener", "Subscription"]
