"""
Relational storage for todos (SQLAlchemy Core, parameterized statements).

The engine owns the connection pool. It is created by `create_pool()` when the
app starts and disposed on shutdown (see `todo_api.main`).
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Engine,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.engine import URL, Row
from sqlalchemy.exc import SQLAlchemyError

from .models import TodoEntity
from .repositories import Repository, StorageError
from .schemas import TITLE_MAX_LENGTH, TodoCreate, TodoReplace
from .settings import Settings

logger = logging.getLogger(__name__)

metadata = MetaData()

todos = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("description", Text, nullable=True),
    Column("completed", Boolean, nullable=False, server_default=text("0")),
    # Microsecond precision on MySQL keeps creation order stable within a second.
    Column("created_at", DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql"), nullable=False),
    Index("idx_todos_created_at", "created_at"),
    sqlite_autoincrement=True,
)


def mysql_url(settings: Settings) -> URL:
    return URL.create(
        "mysql+pymysql",
        username=settings.db_user,
        password=settings.db_password or None,
        host=settings.db_host,
        port=settings.db_port,
        database=settings.db_name,
    )


# PUBLIC_INTERFACE
def create_pool(settings: Settings) -> Engine:
    """
    Build the pooled engine for the configured SQL backend.

    MySQL uses a fixed-size pool (no overflow connections); callers beyond
    `db_pool_size` wait for a connection to be returned.
    """
    if settings.persistence_backend == "sqlite":
        path = settings.sqlite_db_path
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        return create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})

    return create_engine(
        mysql_url(settings),
        pool_size=settings.db_pool_size,
        max_overflow=0,
    )


# Ids outside a signed 64-bit INTEGER can never have been issued.
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1


def _storable_id(todo_id: int) -> bool:
    return _ID_MIN <= todo_id <= _ID_MAX


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"Failed to {action}") from exc


class SqlRepository(Repository):
    """
    Repository over a SQLAlchemy engine. Every write runs in its own short
    transaction; there is no locking across requests.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_schema(self) -> None:
        with _storage_errors("create todos table"):
            metadata.create_all(self._engine, checkfirst=True)
        logger.info("Table 'todos' ready (%s)", self._engine.dialect.name)

    def _row_to_entity(self, row: Row) -> TodoEntity:
        m = row._mapping
        return {
            "id": int(m["id"]),
            "title": str(m["title"]),
            "description": m["description"],
            "completed": bool(m["completed"]),
            "created_at": m["created_at"],
        }

    def list(self) -> List[TodoEntity]:
        stmt = select(todos).order_by(todos.c.created_at.desc(), todos.c.id.desc())
        with _storage_errors("list todos"), self._engine.connect() as conn:
            return [self._row_to_entity(r) for r in conn.execute(stmt)]

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        if not _storable_id(todo_id):
            return None
        with _storage_errors("get todo"), self._engine.connect() as conn:
            row = conn.execute(select(todos).where(todos.c.id == todo_id)).first()
            return self._row_to_entity(row) if row else None

    def create(self, data: TodoCreate) -> TodoEntity:
        with _storage_errors("create todo"), self._engine.begin() as conn:
            result = conn.execute(
                insert(todos).values(
                    title=data.title,
                    description=data.description,
                    completed=False,
                    created_at=datetime.now(),
                )
            )
            new_id = result.inserted_primary_key[0]
            row = conn.execute(select(todos).where(todos.c.id == new_id)).one()
            return self._row_to_entity(row)

    def replace(self, todo_id: int, data: TodoReplace) -> Optional[TodoEntity]:
        if not _storable_id(todo_id):
            return None
        with _storage_errors("update todo"), self._engine.begin() as conn:
            conn.execute(
                update(todos)
                .where(todos.c.id == todo_id)
                .values(title=data.title, description=data.description, completed=data.completed)
            )
            # Re-read instead of trusting rowcount: MySQL reports 0 affected rows for no-op updates.
            row = conn.execute(select(todos).where(todos.c.id == todo_id)).first()
            return self._row_to_entity(row) if row else None

    def delete(self, todo_id: int) -> bool:
        if not _storable_id(todo_id):
            return False
        with _storage_errors("delete todo"), self._engine.begin() as conn:
            result = conn.execute(delete(todos).where(todos.c.id == todo_id))
            return result.rowcount > 0

    def close(self) -> None:
        self._engine.dispose()
