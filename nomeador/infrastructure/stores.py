"""Implementações do armazenamento durável chave/valor."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from copy import deepcopy
from functools import partial
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, TypeVar

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from nomeador.domain.errors import StoreUnavailableError
from nomeador.domain.ports import DurableStore

log = logging.getLogger(__name__)

_T = TypeVar("_T")


class InMemoryDurableStore(DurableStore):
    """Armazenamento em dicionário, útil para testes e execuções efêmeras."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = deepcopy(dict(initial or {}))

    async def get(self, key: str) -> Any | None:
        return deepcopy(self._data.get(key))

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        return {key: deepcopy(self._data[key]) for key in keys if key in self._data}

    async def set_many(self, items: Mapping[str, Any]) -> None:
        self._data.update(deepcopy(dict(items)))

    async def remove(self, keys: Iterable[str]) -> None:
        for key in list(keys):
            self._data.pop(key, None)

    async def items(self) -> dict[str, Any]:
        return deepcopy(self._data)


class JsonFileDurableStore(DurableStore):
    """Persiste todas as chaves em um único arquivo JSON.

    O arquivo é lido uma única vez e reescrito por completo a cada alteração,
    usando um arquivo temporário para que uma falha no meio da escrita não
    corrompa o conteúdo anterior. O acesso ao disco acontece no executor
    padrão do loop para não bloquear a renderização.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._data: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            data = await self._load()
            return deepcopy(data.get(key))

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        async with self._lock:
            data = await self._load()
            return {key: deepcopy(data[key]) for key in keys if key in data}

    async def set_many(self, items: Mapping[str, Any]) -> None:
        async with self._lock:
            data = await self._load()
            updated = dict(data)
            updated.update(deepcopy(dict(items)))
            await self._write(updated)

    async def remove(self, keys: Iterable[str]) -> None:
        removed = set(keys)
        async with self._lock:
            data = await self._load()
            updated = {key: value for key, value in data.items() if key not in removed}
            if len(updated) != len(data):
                await self._write(updated)

    async def items(self) -> dict[str, Any]:
        async with self._lock:
            return deepcopy(await self._load())

    async def _load(self) -> dict[str, Any]:
        if self._data is None:
            loop = asyncio.get_running_loop()
            self._data = await loop.run_in_executor(None, self._read_file)
        return self._data

    async def _write(self, data: dict[str, Any]) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_file, data)
        self._data = data

    def _read_file(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StoreUnavailableError(
                f"Não foi possível ler o armazenamento {self._path}: {exc}"
            ) from exc
        if not isinstance(payload, dict):
            raise StoreUnavailableError(
                f"Conteúdo inesperado em {self._path}: era esperado um objeto JSON"
            )
        return payload

    def _write_file(self, data: dict[str, Any]) -> None:
        temporary = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with temporary.open("w", encoding="utf-8") as stream:
                json.dump(data, stream, ensure_ascii=False, indent=2, sort_keys=True)
                stream.write("\n")
            os.replace(temporary, self._path)
        except OSError as exc:
            raise StoreUnavailableError(
                f"Não foi possível gravar o armazenamento {self._path}: {exc}"
            ) from exc


class MongoDurableStore(DurableStore):
    """Guarda cada chave como um documento ``{"_id": chave, "value": valor}``."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection

    async def get(self, key: str) -> Any | None:
        document = await self._run(self._collection.find_one, {"_id": key})
        if not document:
            return None
        return document.get("value")

    async def get_many(self, keys: Iterable[str]) -> dict[str, Any]:
        wanted = list(keys)
        if not wanted:
            return {}
        documents = await self._run(self._find_all, {"_id": {"$in": wanted}})
        return {document["_id"]: document.get("value") for document in documents}

    async def set_many(self, items: Mapping[str, Any]) -> None:
        if items:
            await self._run(self._upsert_all, dict(items))

    async def remove(self, keys: Iterable[str]) -> None:
        wanted = list(keys)
        if wanted:
            await self._run(self._collection.delete_many, {"_id": {"$in": wanted}})

    async def items(self) -> dict[str, Any]:
        documents = await self._run(self._find_all, {})
        return {document["_id"]: document.get("value") for document in documents}

    def _find_all(self, criteria: dict[str, Any]) -> list[dict[str, Any]]:
        return list(self._collection.find(criteria))

    def _upsert_all(self, items: dict[str, Any]) -> None:
        for key, value in items.items():
            self._collection.update_one(
                {"_id": key}, {"$set": {"value": deepcopy(value)}}, upsert=True
            )

    async def _run(self, func: Callable[..., _T], *args: Any) -> _T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(func, *args))
        except PyMongoError as exc:
            log.warning("Falha ao acessar o MongoDB: %s", exc)
            raise StoreUnavailableError(f"MongoDB indisponível: {exc}") from exc


__all__ = ["InMemoryDurableStore", "JsonFileDurableStore", "MongoDurableStore"]
