from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from threading import RLock
from typing import List, Optional

from fastapi import Request

from .models import TodoEntity
from .schemas import TodoCreate, TodoReplace
from .settings import Settings


class StorageError(Exception):
    """Raised by repositories when the underlying store fails."""


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def list(self) -> List[TodoEntity]:
        """Return all TodoEntities, most recently created first."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def create(self, data: TodoCreate) -> TodoEntity:
        """Insert a new TodoEntity and return it as stored."""

    @abstractmethod
    def replace(self, todo_id: int, data: TodoReplace) -> Optional[TodoEntity]:
        """Overwrite title, description and completed. Return the stored entity or None if not found."""

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    def init_schema(self) -> None:
        """Create backing storage if absent. No-op by default."""

    def close(self) -> None:
        """Release any resources held by the repository."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and local runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TodoEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def list(self) -> List[TodoEntity]:
        with self._lock:
            items = sorted(
                self._items.values(),
                key=lambda t: (t["created_at"], t["id"]),
                reverse=True,
            )
            return [t.copy() for t in items]

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def create(self, data: TodoCreate) -> TodoEntity:
        with self._lock:
            entity: TodoEntity = {
                "id": self._next_id,
                "title": data.title,
                "description": data.description,
                "completed": False,
                "created_at": self._now(),
            }
            self._next_id += 1
            self._items[entity["id"]] = entity
            return entity.copy()

    def replace(self, todo_id: int, data: TodoReplace) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated["title"] = data.title
            updated["description"] = data.description
            updated["completed"] = data.completed
            self._items[todo_id] = updated
            return updated.copy()

    def delete(self, todo_id: int) -> bool:
        with self._lock:
            return self._items.pop(todo_id, None) is not None


# PUBLIC_INTERFACE
def build_repository(settings: Settings) -> Repository:
    """
    Return the repository for the configured backend.
    - memory: InMemoryRepository
    - sqlite / mysql: SqlRepository over a pooled engine

    The caller is responsible for `init_schema()` and `close()`.
    """
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import SqlRepository, create_pool

    return SqlRepository(create_pool(settings))


# PUBLIC_INTERFACE
def get_repository(request: Request) -> Repository:
    """FastAPI dependency returning the repository attached to the running app."""
    repo = getattr(request.app.state, "repository", None)
    if repo is None:
        raise RuntimeError("Repository is not initialized. Start the app through its lifespan.")
    return repo
