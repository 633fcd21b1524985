from __future__ import annotations

from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConstraintViolation, DecodingFailure, NotFound
from .models import TASK, TODO, USER, Entity, EntityKind
from .settings import Settings


class _Unset:
    """Marker for a partial-update field the client did not send."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def present_changes(kind: EntityKind, changes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return the subset of ``changes`` that carries a value, in column order.

    Raises DecodingFailure for names that are not mutable fields of ``kind``.
    """
    unknown = sorted(set(changes) - set(kind.field_names))
    if unknown:
        raise DecodingFailure(f"unknown {kind.name} field(s): {', '.join(unknown)}")
    return {name: changes[name] for name in kind.field_names if name in changes and changes[name] is not UNSET}


def creation_values(kind: EntityKind, fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge caller-supplied creation fields with the kind's defaults.

    Only required fields may be supplied; defaulted ones such as ``completed``
    are changed through update.
    """
    unexpected = sorted(set(fields) - set(kind.required_fields))
    if unexpected:
        raise DecodingFailure(f"unexpected {kind.name} field(s) on create: {', '.join(unexpected)}")
    missing = [name for name in kind.required_fields if fields.get(name, UNSET) is UNSET]
    if missing:
        raise DecodingFailure(f"missing required {kind.name} field(s): {', '.join(missing)}")
    return {f.name: fields[f.name] if f.required else f.default for f in kind.fields}


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract shared by every entity kind and store."""

    kind: EntityKind

    @abstractmethod
    def create(self, fields: Mapping[str, Any]) -> Entity:
        """Insert a new row with defaults filled in and return it with its id."""

    @abstractmethod
    def get(self, entity_id: int) -> Entity:
        """Return the entity with ``entity_id``; raise NotFound if absent."""

    @abstractmethod
    def list(self) -> List[Entity]:
        """Return every entity of this kind, newest (highest id) first."""

    @abstractmethod
    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Entity:
        """
        Merge ``changes`` into the stored entity and return the result.

        Fields mapped to UNSET (or left out) keep their stored value. Raises
        NotFound if the id does not exist.
        """

    @abstractmethod
    def delete(self, entity_id: int) -> bool:
        """Delete by id. Return True if a row was removed, False if none matched."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and the 'memory' backend.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, Entity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        i = self._next_id
        self._next_id += 1
        return i

    def _check_unique(self, values: Mapping[str, Any], exclude_id: Optional[int] = None) -> None:
        for name in self.kind.unique_fields:
            if name not in values:
                continue
            for item in self._items.values():
                if item["id"] != exclude_id and item[name] == values[name]:
                    raise ConstraintViolation(f"UNIQUE constraint failed: {self.kind.table}.{name}")

    def create(self, fields: Mapping[str, Any]) -> Entity:
        values = creation_values(self.kind, fields)
        with self._lock:
            self._check_unique(values)
            entity: Entity = {"id": self._allocate_id(), **values}
            self._items[entity["id"]] = entity
            return entity.copy()

    def get(self, entity_id: int) -> Entity:
        with self._lock:
            item = self._items.get(entity_id)
            if item is None:
                raise NotFound(self.kind.name, entity_id)
            return item.copy()

    def list(self) -> List[Entity]:
        with self._lock:
            return [self._items[i].copy() for i in sorted(self._items, reverse=True)]

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Entity:
        values = present_changes(self.kind, changes)
        with self._lock:
            existing = self._items.get(entity_id)
            if existing is None:
                raise NotFound(self.kind.name, entity_id)
            self._check_unique(values, exclude_id=entity_id)
            updated = {**existing, **values}
            self._items[entity_id] = updated
            return updated.copy()

    def delete(self, entity_id: int) -> bool:
        with self._lock:
            return self._items.pop(entity_id, None) is not None


class InMemoryTaskRepository(InMemoryRepository):
    kind = TASK


class InMemoryTodoRepository(InMemoryRepository):
    kind = TODO


class InMemoryUserRepository(InMemoryRepository):
    kind = USER


# PUBLIC_INTERFACE
def build_repositories(settings: Settings, pool: Any = None) -> Dict[str, Repository]:
    """
    Return one repository per entity kind, keyed by kind name, for the configured backend.
    - memory: InMemory*Repository
    - sqlite: Sql*Repository sharing ``pool`` (an Engine from db.create_pool)
    """
    if settings.persistence_backend == "memory":
        return {
            TASK.name: InMemoryTaskRepository(),
            TODO.name: InMemoryTodoRepository(),
            USER.name: InMemoryUserRepository(),
        }

    from .db import SqlTaskRepository, SqlTodoRepository, SqlUserRepository

    if pool is None:
        raise ValueError("the sqlite backend needs a connection pool; call db.create_pool first")
    return {
        TASK.name: SqlTaskRepository(pool),
        TODO.name: SqlTodoRepository(pool),
        USER.name: SqlUserRepository(pool),
    }
