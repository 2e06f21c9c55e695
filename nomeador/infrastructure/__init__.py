"""Infrastructure public API for nomeador.

Exposes the live document, the durable store backends and the remote
lookup client so callers can import them from ``nomeador.infrastructure``.
"""

from .database import MongoClientFactory, MongoSettings
from .document import LiveDocument, Subscription
from .github_client import DEFAULT_API_URL, GitHubUsersClient
from .stores import InMemoryDurableStore, JsonFileDurableStore, MongoDurableStore

__all__ = [
    "DEFAULT_API_URL",
    "GitHubUsersClient",
    "InMemoryDurableStore",
    "JsonFileDurableStore",
    "LiveDocument",
    "MongoClientFactory",
    "MongoDurableStore",
    "MongoSettings",
    "Subscription",
]
