"""
Translation policy shared by the HTTP and gRPC adapters.

Each EntityAdapter call returns a Result whose Outcome is mapped to a status by
HTTP_STATUS or GRPC_STATUS, so both protocols report the same outcome for the
same repository behavior.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping

import grpc

from .errors import ConstraintViolation, DecodingFailure, NotFound, PersistenceError
from .models import EntityKind, to_wire
from .repositories import UNSET, Repository

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    OK = "ok"
    CREATED = "created"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    INTERNAL = "internal"


HTTP_STATUS: Dict[Outcome, int] = {
    Outcome.OK: 200,
    Outcome.CREATED: 201,
    Outcome.DELETED: 204,
    Outcome.NOT_FOUND: 404,
    Outcome.CONFLICT: 409,
    Outcome.INVALID: 422,
    Outcome.INTERNAL: 500,
}

GRPC_STATUS: Dict[Outcome, grpc.StatusCode] = {
    Outcome.OK: grpc.StatusCode.OK,
    Outcome.CREATED: grpc.StatusCode.OK,
    Outcome.DELETED: grpc.StatusCode.OK,
    Outcome.NOT_FOUND: grpc.StatusCode.NOT_FOUND,
    Outcome.CONFLICT: grpc.StatusCode.ALREADY_EXISTS,
    Outcome.INVALID: grpc.StatusCode.INVALID_ARGUMENT,
    Outcome.INTERNAL: grpc.StatusCode.INTERNAL,
}

_SUCCESS = {Outcome.OK, Outcome.CREATED, Outcome.DELETED}


@dataclass(frozen=True)
class Result:
    """Protocol-neutral outcome of one adapter call."""

    outcome: Outcome
    payload: Any = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in _SUCCESS


# PUBLIC_INTERFACE
def decode_changes(kind: EntityKind, provided: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build a partial-update change map from the fields a client actually sent.

    ``provided`` holds only the fields present on the wire. Missing fields and
    explicit nulls become UNSET; any other value, including "" and False, is
    kept as a real change.
    """
    unknown = sorted(set(provided) - set(kind.field_names))
    if unknown:
        raise DecodingFailure(f"unknown {kind.name} field(s): {', '.join(unknown)}")
    return {name: UNSET if provided.get(name) is None else provided[name] for name in kind.field_names}


class EntityAdapter:
    """
    Runs repository operations for one entity kind and classifies the result.

    Holds nothing but the repository reference.
    """

    def __init__(self, repository: Repository) -> None:
        self.repository = repository
        self.kind = repository.kind

    def _not_found(self, entity_id: int) -> Result:
        return Result(Outcome.NOT_FOUND, message=f"{self.kind.label} with id {entity_id} not found")

    def _run(self, operation: str, entity_id: Any, call: Callable[[], Result]) -> Result:
        try:
            return call()
        except NotFound:
            return self._not_found(entity_id)
        except DecodingFailure as e:
            return Result(Outcome.INVALID, message=str(e))
        except ConstraintViolation as e:
            logger.info("%s %s rejected by constraint: %s", operation, self.kind.name, e)
            return Result(Outcome.CONFLICT, message=f"{self.kind.label} conflicts with an existing record")
        except PersistenceError:
            logger.exception("%s %s failed", operation, self.kind.name)
            return Result(Outcome.INTERNAL, message=f"Failed to {operation} {self.kind.name}")

    def create(self, fields: Mapping[str, Any]) -> Result:
        return self._run(
            "create",
            None,
            lambda: Result(Outcome.CREATED, to_wire(self.kind, self.repository.create(fields))),
        )

    def get(self, entity_id: int) -> Result:
        return self._run(
            "get",
            entity_id,
            lambda: Result(Outcome.OK, to_wire(self.kind, self.repository.get(entity_id))),
        )

    def list(self) -> Result:
        return self._run(
            "list",
            None,
            lambda: Result(Outcome.OK, [to_wire(self.kind, e) for e in self.repository.list()]),
        )

    def update(self, entity_id: int, provided: Mapping[str, Any]) -> Result:
        def call() -> Result:
            changes = decode_changes(self.kind, provided)
            return Result(Outcome.OK, to_wire(self.kind, self.repository.update(entity_id, changes)))

        return self._run("update", entity_id, call)

    def delete(self, entity_id: int) -> Result:
        def call() -> Result:
            if not self.repository.delete(entity_id):
                return self._not_found(entity_id)
            return Result(Outcome.DELETED)

        return self._run("delete", entity_id, call)
