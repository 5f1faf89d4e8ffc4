from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

_BACKENDS = {"mysql", "sqlite", "memory"}

DEFAULT_ALLOW_ORIGINS = "http://localhost:5173,http://localhost:3000"
DEFAULT_ALLOW_ORIGIN_SUFFIXES = ".railway.app,.vercel.app"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables (and an optional .env file).

    Env vars:
    - PERSISTENCE_BACKEND: 'mysql' (default), 'sqlite' or 'memory'
    - DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME: MySQL connection parameters
    - DB_POOL_SIZE: fixed number of pooled connections (default 10)
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - HOST, PORT: listening address for the uvicorn server
    - CORS_ALLOW_ORIGINS: comma-separated list of exact allowed origins
    - CORS_ALLOW_ORIGIN_SUFFIXES: comma-separated host suffixes (e.g. '.vercel.app')
    - LOG_LEVEL: root log level name (default INFO)
    - STATIC_DIR: optional directory served at '/' after the API routes
    """

    persistence_backend: str
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_pool_size: int
    sqlite_db_path: str
    host: str
    port: int
    cors_allow_origins: List[str]
    cors_allow_origin_suffixes: List[str]
    log_level: str
    static_dir: Optional[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_list(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    # Real environment variables win over .env entries.
    load_dotenv(override=False)

    backend = _get_env("PERSISTENCE_BACKEND", "mysql").strip().lower()
    if backend not in _BACKENDS:
        backend = "mysql"

    static_dir = os.getenv("STATIC_DIR", "").strip() or None

    return Settings(
        persistence_backend=backend,
        db_host=_get_env("DB_HOST", "localhost").strip(),
        db_port=_parse_int(_get_env("DB_PORT", "3306"), 3306),
        db_user=_get_env("DB_USER", "root").strip(),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_name=_get_env("DB_NAME", "todos").strip(),
        db_pool_size=max(_parse_int(_get_env("DB_POOL_SIZE", "10"), 10), 1),
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
        cors_allow_origins=_parse_list(_get_env("CORS_ALLOW_ORIGINS", DEFAULT_ALLOW_ORIGINS)),
        cors_allow_origin_suffixes=_parse_list(
            _get_env("CORS_ALLOW_ORIGIN_SUFFIXES", DEFAULT_ALLOW_ORIGIN_SUFFIXES)
        ),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        static_dir=static_dir,
    )
