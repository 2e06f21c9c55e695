"""Mensagens de controle recebidas da interface de configuração."""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class ToggleMessage(BaseModel):
    """Liga ou desliga a exibição de nomes reais."""

    action: Literal["toggle"]
    #: Novo valor da flag global.
    enabled: bool


class GetStateMessage(BaseModel):
    """Solicita o estado atual da flag global."""

    action: Literal["getState"]


class RefreshCacheMessage(BaseModel):
    """Descarta os rótulos conhecidos e força nova classificação e resolução."""

    action: Literal["refreshCache"]


ControlMessage = Annotated[
    Union[ToggleMessage, GetStateMessage, RefreshCacheMessage],
    Field(discriminator="action"),
]

control_message_adapter: TypeAdapter[ControlMessage] = TypeAdapter(ControlMessage)


class AckResponse(BaseModel):
    """Confirmação enviada após o processamento completo da mensagem."""

    success: bool = True
    error: Optional[str] = None


class StateResponse(BaseModel):
    """Estado atual devolvido para ``getState``."""

    enabled: bool


__all__ = [
    "AckResponse",
    "ControlMessage",
    "GetStateMessage",
    "RefreshCacheMessage",
    "StateResponse",
    "ToggleMessage",
    "control_message_adapter",
]
