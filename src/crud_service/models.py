from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple


# A persisted record: "id" plus one key per field of its EntityKind. Repositories
# always hand out fresh dicts, never their stored ones.
Entity = Dict[str, Any]

# Ids are signed 64-bit: INTEGER PRIMARY KEY in SQLite, int64 in protobuf.
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1


@dataclass(frozen=True)
class FieldSpec:
    """One column of an entity kind."""

    name: str
    type: type
    default: Optional[Any] = None
    unique: bool = False

    @property
    def required(self) -> bool:
        """True when the caller must supply the value at creation time."""
        return self.default is None


@dataclass(frozen=True)
class EntityKind:
    """
    Describes one entity kind: its name, table and ordered field set.

    The SQL statements, protobuf descriptors and wire projection are
    derived from this description.
    """

    name: str
    plural: str
    table: str
    fields: Tuple[FieldSpec, ...]

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)

    @property
    def unique_fields(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.unique)

    @property
    def wire_fields(self) -> Tuple[str, ...]:
        return ("id",) + self.field_names


TASK = EntityKind(
    name="task",
    plural="tasks",
    table="tasks",
    fields=(
        FieldSpec("title", str),
        FieldSpec("description", str),
        FieldSpec("completed", bool, default=False),
    ),
)

TODO = EntityKind(
    name="todo",
    plural="todos",
    table="todos",
    fields=(
        FieldSpec("title", str),
        FieldSpec("description", str),
        FieldSpec("completed", bool, default=False),
    ),
)

USER = EntityKind(
    name="user",
    plural="users",
    table="users",
    fields=(
        FieldSpec("name", str),
        FieldSpec("email", str, unique=True),
    ),
)

ENTITY_KINDS: Tuple[EntityKind, ...] = (TASK, TODO, USER)


# PUBLIC_INTERFACE
def to_wire(kind: EntityKind, entity: Mapping[str, Any]) -> Dict[str, Any]:
    """Project an entity onto the wire field set shared by every protocol."""
    return {name: entity[name] for name in kind.wire_fields}
