from dataclasses import replace

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import QueuePool

from todo_api.db import SqlRepository, create_pool, mysql_url
from todo_api.repositories import InMemoryRepository, StorageError, build_repository
from todo_api.schemas import TodoCreate, TodoReplace


class TestRepositoryContract:
    def test_create_get_replace_delete(self, repository):
        created = repository.create(TodoCreate(title="Write report", description="Q3"))
        assert created["completed"] is False
        assert repository.get(created["id"]) == created

        replaced = repository.replace(
            created["id"], TodoReplace(title="Write report", description=None, completed=True)
        )
        assert replaced is not None
        assert replaced["completed"] is True
        assert replaced["description"] is None
        assert replaced["created_at"] == created["created_at"]

        assert repository.delete(created["id"]) is True
        assert repository.get(created["id"]) is None
        assert repository.delete(created["id"]) is False

    def test_replace_missing_returns_none(self, repository):
        data = TodoReplace(title="Ghost", description=None, completed=False)
        assert repository.replace(12345, data) is None
        assert repository.list() == []

    @pytest.mark.parametrize("todo_id", [2**63, -(2**63) - 1, 10**30])
    def test_ids_outside_integer_range_are_missing(self, repository, todo_id):
        repository.create(TodoCreate(title="present"))
        data = TodoReplace(title="Ghost", description=None, completed=True)
        assert repository.get(todo_id) is None
        assert repository.replace(todo_id, data) is None
        assert repository.delete(todo_id) is False
        assert [t["title"] for t in repository.list()] == ["present"]

    def test_list_orders_newest_first(self, repository):
        ids = [repository.create(TodoCreate(title=f"t{i}"))["id"] for i in range(4)]
        assert [t["id"] for t in repository.list()] == list(reversed(ids))

    def test_ids_are_not_reused_after_delete(self, repository):
        first = repository.create(TodoCreate(title="first"))
        repository.delete(first["id"])
        second = repository.create(TodoCreate(title="second"))
        assert second["id"] != first["id"]


class TestInMemoryRepository:
    def test_returned_entities_are_copies(self):
        repo = InMemoryRepository()
        created = repo.create(TodoCreate(title="Immutable"))
        created["title"] = "mutated"
        assert repo.get(created["id"])["title"] == "Immutable"


class TestSqlRepository:
    def test_init_schema_creates_table_once(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'schema.db'}")
        repo = SqlRepository(engine)
        repo.init_schema()
        repo.init_schema()

        columns = {c["name"] for c in inspect(engine).get_columns("todos")}
        assert columns == {"id", "title", "description", "completed", "created_at"}
        repo.close()

    def test_missing_table_raises_storage_error(self, tmp_path):
        repo = SqlRepository(create_engine(f"sqlite:///{tmp_path / 'empty.db'}"))
        with pytest.raises(StorageError):
            repo.list()
        with pytest.raises(StorageError):
            repo.create(TodoCreate(title="nowhere"))
        repo.close()


class TestBuildRepository:
    def test_memory_backend(self, settings):
        assert isinstance(build_repository(settings), InMemoryRepository)

    def test_sqlite_backend_creates_parent_directory(self, settings, tmp_path):
        path = tmp_path / "nested" / "todos.db"
        repo = build_repository(replace(settings, persistence_backend="sqlite", sqlite_db_path=str(path)))
        assert isinstance(repo, SqlRepository)
        assert path.parent.is_dir()
        repo.close()

    def test_mysql_pool_is_bounded(self, settings):
        engine = create_pool(replace(settings, persistence_backend="mysql", db_pool_size=4))
        try:
            assert engine.dialect.name == "mysql"
            assert isinstance(engine.pool, QueuePool)
            assert engine.pool.size() == 4
        finally:
            engine.dispose()

    def test_mysql_url(self, settings):
        url = mysql_url(replace(settings, db_host="db.internal", db_port=3307, db_user="app", db_password="s3cret"))
        assert url.drivername == "mysql+pymysql"
        assert url.host == "db.internal"
        assert url.port == 3307
        assert url.username == "app"
        assert url.password == "s3cret"
        assert url.database == "todos"
