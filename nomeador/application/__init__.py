"""Serviços de aplicação: pipeline incremental e controle de estado."""

from .context import Marker, MarkerTable, SessionContext
from .controller import StateController
from .display import DisplayWriter
from .messages import (
    AckResponse,
    GetStateMessage,
    RefreshCacheMessage,
    StateResponse,
    ToggleMessage,
)
from .pipeline import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DEBOUNCE_SECONDS,
    DocumentWatcher,
    UpdatePipeline,
)

__all__ = [
    "AckResponse",
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_DEBOUNCE_SECONDS",
    "DisplayWriter",
    "DocumentWatcher",
    "GetStateMessage",
    "Marker",
    "MarkerTable",
    "RefreshCacheMessage",
    "SessionContext",
    "StateController",
    "StateResponse",
    "ToggleMessage",
    "UpdatePipeline",
]
