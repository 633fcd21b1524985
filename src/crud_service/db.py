from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Generator, Iterable, List, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .errors import BackendFailure, ConstraintViolation, NotFound
from .models import ENTITY_KINDS, ID_MAX, ID_MIN, TASK, TODO, USER, Entity, EntityKind, FieldSpec
from .repositories import Repository, creation_values, present_changes

logger = logging.getLogger(__name__)

_SQL_TYPES = {str: "TEXT", bool: "BOOLEAN", int: "INTEGER"}


# PUBLIC_INTERFACE
def create_pool(database_url: str, pool_size: int = 5) -> Engine:
    """
    Create the process-wide connection pool for ``database_url``.

    The returned Engine is passed explicitly to every SQL repository. An
    in-memory SQLite URL gets a single shared connection so all threads see
    the same database; transactions from concurrent threads then interleave on
    that connection, so such URLs are for single-threaded tests only. Serve a
    file-backed URL.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_size=pool_size, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if url.database in (None, "", ":memory:"):
        logger.warning("in-memory SQLite shares one connection across threads; use a file URL when serving")
        return create_engine(url, poolclass=StaticPool, connect_args=connect_args)

    os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)
    return create_engine(url, pool_size=pool_size, pool_pre_ping=True, connect_args=connect_args)


def _column_ddl(fspec: FieldSpec) -> str:
    col = f"{fspec.name} {_SQL_TYPES[fspec.type]} NOT NULL"
    if not fspec.required:
        default = int(fspec.default) if isinstance(fspec.default, bool) else fspec.default
        col += f" DEFAULT {default!r}"
    if fspec.unique:
        col += " UNIQUE"
    return col


def table_ddl(kind: EntityKind) -> str:
    columns = ["id INTEGER PRIMARY KEY AUTOINCREMENT", *(_column_ddl(f) for f in kind.fields)]
    body = ",\n    ".join(columns)
    return f"CREATE TABLE IF NOT EXISTS {kind.table} (\n    {body}\n)"


# PUBLIC_INTERFACE
def init_db(pool: Engine, kinds: Iterable[EntityKind] = ENTITY_KINDS) -> None:
    """Create one table per entity kind if it does not exist yet."""
    with pool.begin() as conn:
        for kind in kinds:
            conn.execute(text(table_ddl(kind)))
    logger.info("database schema ready on %s", pool.url.render_as_string(hide_password=True))


class SqlRepository(Repository):
    """
    Repository backed by a SQL table, one statement per operation.
    """

    def __init__(self, pool: Engine) -> None:
        self._pool = pool
        self._columns = ", ".join(self.kind.wire_fields)

    @contextmanager
    def _conn(self) -> Generator[Connection, None, None]:
        try:
            with self._pool.begin() as conn:
                yield conn
        except IntegrityError as e:
            raise ConstraintViolation(str(e.orig)) from e
        except SQLAlchemyError as e:
            raise BackendFailure(f"{self.kind.name} store failure: {e.__class__.__name__}") from e

    def _row_to_entity(self, row: Any) -> Entity:
        data = row._mapping
        entity: Entity = {"id": int(data["id"])}
        for fspec in self.kind.fields:
            entity[fspec.name] = fspec.type(data[fspec.name])
        return entity

    def create(self, fields: Mapping[str, Any]) -> Entity:
        values = creation_values(self.kind, fields)
        names = ", ".join(values)
        params = ", ".join(f":{name}" for name in values)
        with self._conn() as conn:
            row = conn.execute(
                text(f"INSERT INTO {self.kind.table} ({names}) VALUES ({params}) RETURNING {self._columns}"),
                values,
            ).one()
            return self._row_to_entity(row)

    def get(self, entity_id: int) -> Entity:
        if not ID_MIN <= entity_id <= ID_MAX:
            raise NotFound(self.kind.name, entity_id)
        with self._conn() as conn:
            row = conn.execute(
                text(f"SELECT {self._columns} FROM {self.kind.table} WHERE id = :id"),
                {"id": entity_id},
            ).first()
        if row is None:
            raise NotFound(self.kind.name, entity_id)
        return self._row_to_entity(row)

    def list(self) -> List[Entity]:
        with self._conn() as conn:
            rows = conn.execute(
                text(f"SELECT {self._columns} FROM {self.kind.table} ORDER BY id DESC")
            ).all()
        return [self._row_to_entity(r) for r in rows]

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Entity:
        values = present_changes(self.kind, changes)
        if not values:
            return self.get(entity_id)
        if not ID_MIN <= entity_id <= ID_MAX:
            raise NotFound(self.kind.name, entity_id)

        # Existence check and write in one statement: a concurrent delete gives NotFound.
        assignments = ", ".join(f"{name} = :{name}" for name in values)
        with self._conn() as conn:
            row = conn.execute(
                text(
                    f"UPDATE {self.kind.table} SET {assignments} WHERE id = :id RETURNING {self._columns}"
                ),
                {**values, "id": entity_id},
            ).first()
        if row is None:
            raise NotFound(self.kind.name, entity_id)
        return self._row_to_entity(row)

    def delete(self, entity_id: int) -> bool:
        if not ID_MIN <= entity_id <= ID_MAX:
            return False
        with self._conn() as conn:
            result = conn.execute(text(f"DELETE FROM {self.kind.table} WHERE id = :id"), {"id": entity_id})
            return result.rowcount > 0


class SqlTaskRepository(SqlRepository):
    kind = TASK


class SqlTodoRepository(SqlRepository):
    kind = TODO


class SqlUserRepository(SqlRepository):
    kind = USER
