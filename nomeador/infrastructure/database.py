"""Conexão com o MongoDB usada pelo backend ``mongo`` do armazenamento."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from pymongo import MongoClient
from pymongo.collection import Collection

from .stores import MongoDurableStore

log = logging.getLogger(__name__)

_DEFAULT_URI = "mongodb://localhost:27017"
_DEFAULT_DATABASE = "nomeador"
_DEFAULT_COLLECTION = "store"
_DEFAULT_TIMEOUT_MS = 2000


@dataclass(frozen=True)
class MongoSettings:
    """Parâmetros de conexão lidos do ambiente."""

    #: URI completa do servidor.
    uri: str
    #: Banco que guarda a coleção do armazenamento.
    database: str
    #: Coleção com um documento por chave.
    collection: str
    #: Tempo máximo para encontrar um servidor antes de falhar.
    timeout_ms: int = _DEFAULT_TIMEOUT_MS

    @classmethod
    def from_env(cls) -> "MongoSettings":
        return cls(
            uri=os.getenv("MONGO_URI", _DEFAULT_URI),
            database=os.getenv("MONGO_DATABASE", _DEFAULT_DATABASE),
            collection=os.getenv("NOMEADOR_MONGO_COLLECTION", _DEFAULT_COLLECTION),
            timeout_ms=int(os.getenv("NOMEADOR_MONGO_TIMEOUT_MS", _DEFAULT_TIMEOUT_MS)),
        )


class MongoClientFactory:
    """Cria o cliente sob demanda e entrega a coleção do armazenamento.

    O driver só abre conexões na primeira operação, então construir a
    fábrica (ou o armazenamento) não exige um servidor disponível.
    """

    def __init__(self, settings: MongoSettings | None = None) -> None:
        self._settings = settings or MongoSettings.from_env()
        self._client: MongoClient | None = None

    @property
    def settings(self) -> MongoSettings:
        return self._settings

    def create_client(self) -> MongoClient:
        if self._client is None:
            log.debug(
                "Criando cliente MongoDB para %s.%s",
                self._settings.database,
                self._settings.collection,
            )
            self._client = MongoClient(
                self._settings.uri, serverSelectionTimeoutMS=self._settings.timeout_ms
            )
        return self._client

    def get_collection(self) -> Collection:
        client = self.create_client()
        return client[self._settings.database][self._settings.collection]

    def create_store(self) -> MongoDurableStore:
        return MongoDurableStore(self.get_collection())

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


__all__ = ["MongoClientFactory", "MongoSettings"]
