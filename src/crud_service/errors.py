"""
Failure taxonomy shared by repositories and transport adapters.

Repositories raise these; the adapter policy in ``policy.py`` is the only place
that turns them into protocol status codes.
"""
from __future__ import annotations


class RepositoryError(Exception):
    """Base class for every failure surfaced by a repository."""


class NotFound(RepositoryError):
    """The requested id does not exist in the entity's table."""

    def __init__(self, kind: str, entity_id: int) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} with id {entity_id} not found")


class PersistenceError(RepositoryError):
    """The store rejected or failed to execute a statement."""


class ConstraintViolation(PersistenceError):
    """A column constraint (e.g. a unique email) rejected the write."""


class BackendFailure(PersistenceError):
    """Connectivity or driver-level failure of the store."""


class DecodingFailure(RepositoryError):
    """Malformed request data caught at the adapter boundary."""
