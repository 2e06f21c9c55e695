"""nomeador - exibe nomes reais no lugar de handles em documentos HTML."""
from .application import SessionContext, StateController, UpdatePipeline
from .classification import classify, find_candidates
from .container import Container, build_container, build_store
from .domain import CacheEntry, RateLimitSnapshot
from .infrastructure import GitHubUsersClient, LiveDocument
from .storage import CacheStore, SettingsStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "Container",
    "GitHubUsersClient",
    "LiveDocument",
    "RateLimitSnapshot",
    "SessionContext",
    "SettingsStore",
    "StateController",
    "UpdatePipeline",
    "build_container",
    "build_store",
    "classify",
    "find_candidates",
]
