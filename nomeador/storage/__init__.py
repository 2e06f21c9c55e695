"""Camadas de cache e de configuração sobre o armazenamento durável."""

from .cache_store import (
    CacheStore,
    PurgeResult,
    REVALIDATE_AFTER_SECONDS,
    RETAIN_FOR_SECONDS,
)
from .settings_store import SettingsStore, StoredSettings

__all__ = [
    "CacheStore",
    "PurgeResult",
    "REVALIDATE_AFTER_SECONDS",
    "RETAIN_FOR_SECONDS",
    "SettingsStore",
    "StoredSettings",
]
