"""Estado mutável compartilhado por todos os componentes de uma sessão."""
from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bs4 import Tag


@dataclass
class Marker:
    """Associação entre um nó do documento e o handle que ele representa."""

    #: Handle extraído na classificação; imutável durante a vida do nó.
    handle: str
    #: Texto exibido na última renderização, usado para localizá-lo de novo.
    displayed: Optional[str] = None
    #: Indica se o handle é exibido com ``@`` (menções).
    sigil: bool = False


class MarkerTable:
    """Tabela lateral indexada pela identidade do nó, com referências fracas.

    As entradas deixam de existir quando o nó é coletado pelo coletor de lixo,
    então nenhuma limpeza explícita é necessária ao remover nós do documento.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, Tuple["weakref.ref[Tag]", Marker]] = {}

    def __len__(self) -> int:
        return len(self.live_items())

    def get(self, node: Tag) -> Optional[Marker]:
        entry = self._entries.get(id(node))
        if entry is None:
            return None
        ref, marker = entry
        if ref() is not node:
            return None
        return marker

    def handle_for(self, node: Tag) -> Optional[str]:
        marker = self.get(node)
        return marker.handle if marker is not None else None

    def attach(self, node: Tag, handle: str) -> Marker:
        """Marca o nó com o handle; remarcar com outro handle é um erro."""

        current = self.get(node)
        if current is not None:
            if current.handle != handle:
                raise ValueError(
                    f"O nó já está associado ao handle '{current.handle}', não a '{handle}'"
                )
            return current
        key = id(node)
        marker = Marker(handle=handle)

        def _forget(ref: "weakref.ref[Tag]", key: int = key) -> None:
            entry = self._entries.get(key)
            if entry is not None and entry[0] is ref:
                del self._entries[key]

        self._entries[key] = (weakref.ref(node, _forget), marker)
        return marker

    def live_items(self) -> List[Tuple[Tag, Marker]]:
        """Lista pares ``(nó, marcador)`` de nós ainda vivos e não destruídos."""

        items: List[Tuple[Tag, Marker]] = []
        for ref, marker in list(self._entries.values()):
            node = ref()
            if node is None or getattr(node, "decomposed", False):
                continue
            items.append((node, marker))
        return items

    def nodes_for(self, handle: str) -> List[Tuple[Tag, Marker]]:
        return [(node, marker) for node, marker in self.live_items() if marker.handle == handle]

    def clear(self) -> None:
        self._entries.clear()


@dataclass
class SessionContext:
    """Contexto da sessão repassado a cada componente.

    Todo acesso acontece na thread do loop asyncio; um runtime com
    paralelismo real precisaria de um lock em torno destes campos.
    """

    enabled: bool = True
    markers: MarkerTable = field(default_factory=MarkerTable)


__all__ = ["Marker", "MarkerTable", "SessionContext"]
