from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from todo_api.main import create_app
from todo_api.repositories import InMemoryRepository, Repository, StorageError, build_repository
from todo_api.settings import Settings


class BrokenRepository(InMemoryRepository):
    """Repository whose every operation fails like an unreachable database."""

    def _fail(self, *args, **kwargs):
        raise StorageError("connection refused")

    list = _fail  # type: ignore[assignment]
    get = _fail  # type: ignore[assignment]
    create = _fail  # type: ignore[assignment]
    replace = _fail  # type: ignore[assignment]
    delete = _fail  # type: ignore[assignment]


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """
    Explicit settings so tests never depend on the host environment or a .env file.
    """
    return Settings(
        persistence_backend="memory",
        db_host="localhost",
        db_port=3306,
        db_user="root",
        db_password="",
        db_name="todos",
        db_pool_size=2,
        sqlite_db_path=str(tmp_path / "todos.db"),
        host="127.0.0.1",
        port=3000,
        cors_allow_origins=["http://localhost:5173", "http://localhost:3000"],
        cors_allow_origin_suffixes=[".railway.app", ".vercel.app"],
        log_level="INFO",
        static_dir=None,
    )


@pytest.fixture(params=["memory", "sqlite"])
def repository(request, settings: Settings) -> Iterator[Repository]:
    """The same API contract is exercised against every backend that runs without a server."""
    repo = build_repository(replace(settings, persistence_backend=request.param))
    repo.init_schema()
    yield repo
    repo.close()


@pytest.fixture()
def client(settings: Settings, repository: Repository) -> TestClient:
    return TestClient(create_app(settings, repository=repository))


@pytest.fixture()
def broken_client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings, repository=BrokenRepository()))
