import logging
import threading

import pytest
from sqlalchemy import text

from crud_service.db import SqlTaskRepository, SqlUserRepository, create_pool, init_db, table_ddl
from crud_service.errors import BackendFailure
from crud_service.models import TASK, USER
from crud_service.repositories import InMemoryTaskRepository, build_repositories

from conftest import make_settings


class TestSchema:
    def test_task_table_ddl(self):
        ddl = table_ddl(TASK)
        assert "CREATE TABLE IF NOT EXISTS tasks" in ddl
        assert "id INTEGER PRIMARY KEY AUTOINCREMENT" in ddl
        assert "completed BOOLEAN NOT NULL DEFAULT 0" in ddl

    def test_user_email_is_unique(self):
        assert "email TEXT NOT NULL UNIQUE" in table_ddl(USER)

    def test_init_db_is_idempotent(self, pool):
        init_db(pool)
        init_db(pool)
        with pool.connect() as conn:
            tables = {r[0] for r in conn.execute(text("SELECT name FROM sqlite_master WHERE type = 'table'"))}
        assert {"tasks", "todos", "users"} <= tables

    def test_completed_defaults_at_store_level(self, pool):
        with pool.begin() as conn:
            conn.execute(text("INSERT INTO tasks (title, description) VALUES ('Raw', 'Inserted directly')"))
        (task,) = SqlTaskRepository(pool).list()
        assert task["completed"] is False


class TestPool:
    def test_in_memory_pool_is_shared_across_threads(self):
        engine = create_pool("sqlite://")
        init_db(engine)
        repo = SqlTaskRepository(engine)
        created = repo.create({"title": "Main thread", "description": "written first"})
        seen = []

        def worker():
            seen.extend(repo.list())

        t = threading.Thread(target=worker)
        t.start()
        t.join()

        assert seen == [created]
        engine.dispose()

    def test_in_memory_pool_warns_it_is_single_connection(self, caplog):
        with caplog.at_level(logging.WARNING, logger="crud_service.db"):
            engine = create_pool("sqlite:///:memory:")
        assert any("use a file URL" in r.getMessage() for r in caplog.records)
        engine.dispose()

    def test_file_pool_does_not_warn(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger="crud_service.db"):
            engine = create_pool(f"sqlite:///{tmp_path / 'app.db'}")
        assert not [r for r in caplog.records if r.name == "crud_service.db"]
        engine.dispose()

    def test_file_pool_creates_parent_directory(self, tmp_path):
        engine = create_pool(f"sqlite:///{tmp_path / 'nested' / 'dir' / 'app.db'}")
        init_db(engine)
        assert (tmp_path / "nested" / "dir").is_dir()
        engine.dispose()

    def test_missing_table_is_a_backend_failure(self, tmp_path):
        engine = create_pool(f"sqlite:///{tmp_path / 'empty.db'}")
        with pytest.raises(BackendFailure):
            SqlUserRepository(engine).list()
        engine.dispose()


class TestBuildRepositories:
    def test_memory_backend(self):
        repos = build_repositories(make_settings(persistence_backend="memory"))
        assert set(repos) == {"task", "todo", "user"}
        assert isinstance(repos["task"], InMemoryTaskRepository)

    def test_sqlite_backend_shares_pool(self, pool):
        repos = build_repositories(make_settings(persistence_backend="sqlite"), pool)
        assert isinstance(repos["task"], SqlTaskRepository)
        assert all(r._pool is pool for r in repos.values())

    def test_sqlite_backend_requires_pool(self):
        with pytest.raises(ValueError):
            build_repositories(make_settings(persistence_backend="sqlite"))
