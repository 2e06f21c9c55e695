"""Escrita do rótulo (ou do handle) dentro de um nó já classificado."""
from __future__ import annotations

from bs4 import NavigableString, Tag

from nomeador.classification import HANDLE_ATTRIBUTE

from .context import Marker


class DisplayWriter:
    """Substitui apenas os trechos de texto que mostram o handle ou o rótulo.

    Marcação estrutural e textos vizinhos dentro do mesmo nó são preservados.
    A operação é idempotente: renderizar duas vezes o mesmo estado não altera
    o documento.
    """

    def render(self, node: Tag, marker: Marker, label: str) -> None:
        handle = marker.handle
        show_label = bool(label) and label != handle
        if "user-mention" in (node.get("class") or ()):
            marker.sigil = True

        known = {handle.lower(), (label or handle).lower()}
        if marker.displayed:
            known.add(marker.displayed.lower())

        fragments = [
            text
            for text in node.find_all(string=True)
            if type(text) is NavigableString and text.strip()
        ]
        for text in fragments:
            stripped = text.strip()
            has_sigil = stripped.startswith("@")
            bare = stripped[1:] if has_sigil else stripped
            if stripped.lower() not in known and bare.lower() not in known:
                continue
            if has_sigil and bare.lower() == handle.lower():
                marker.sigil = True
            if show_label:
                shown = label
            else:
                shown = f"@{handle}" if marker.sigil else handle
            leading = text[: len(text) - len(text.lstrip())]
            trailing = text[len(text.rstrip()):]
            replacement = f"{leading}{shown}{trailing}"
            if replacement != str(text):
                text.replace_with(NavigableString(replacement))

        node[HANDLE_ATTRIBUTE] = handle
        tooltip = f"@{handle}"
        if show_label:
            node["title"] = tooltip
        elif node.get("title") == tooltip:
            del node["title"]
        marker.displayed = label if show_label else handle


__all__ = ["DisplayWriter"]
