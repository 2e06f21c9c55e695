"""Configurações compartilhadas carregadas a partir de variáveis de ambiente."""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_API_URL = "https://api.github.com"
_DEFAULT_REQUEST_TIMEOUT = 10.0
_DEFAULT_STORE_BACKEND = "json"
_DEFAULT_STORE_PATH = "~/.nomeador/store.json"
_DEFAULT_BATCH_SIZE = 20
_DEFAULT_DEBOUNCE_MS = 100
_DEFAULT_LOG_LEVEL = "INFO"

STORE_BACKENDS = ("json", "mongo", "memory")


@lru_cache(maxsize=None)
def get_api_base_url() -> str:
    """Retorna a URL base da API de usuários."""

    return os.getenv("NOMEADOR_API_URL", _DEFAULT_API_URL)


@lru_cache(maxsize=None)
def get_request_timeout() -> float:
    """Retorna o tempo limite, em segundos, das consultas remotas."""

    return float(os.getenv("NOMEADOR_REQUEST_TIMEOUT", _DEFAULT_REQUEST_TIMEOUT))


@lru_cache(maxsize=None)
def get_store_backend() -> str:
    """Retorna o backend do armazenamento durável (json, mongo ou memory)."""

    backend = os.getenv("NOMEADOR_STORE", _DEFAULT_STORE_BACKEND).strip().lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(
            f"NOMEADOR_STORE inválido: '{backend}'. Use um de {', '.join(STORE_BACKENDS)}"
        )
    return backend


@lru_cache(maxsize=None)
def get_store_path() -> Path:
    """Retorna o caminho do arquivo usado pelo backend JSON."""

    return Path(os.getenv("NOMEADOR_STORE_PATH", _DEFAULT_STORE_PATH)).expanduser()


@lru_cache(maxsize=None)
def get_batch_size() -> int:
    """Retorna a quantidade de nós processados por lote."""

    return int(os.getenv("NOMEADOR_BATCH_SIZE", _DEFAULT_BATCH_SIZE))


@lru_cache(maxsize=None)
def get_debounce_seconds() -> float:
    """Retorna a janela de agrupamento de mutações em segundos."""

    return int(os.getenv("NOMEADOR_DEBOUNCE_MS", _DEFAULT_DEBOUNCE_MS)) / 1000


@lru_cache(maxsize=None)
def get_log_level() -> str:
    return os.getenv("NOMEADOR_LOG_LEVEL", _DEFAULT_LOG_LEVEL)


__all__ = [
    "STORE_BACKENDS",
    "get_api_base_url",
    "get_batch_size",
    "get_debounce_seconds",
    "get_log_level",
    "get_request_timeout",
    "get_store_backend",
    "get_store_path",
]
