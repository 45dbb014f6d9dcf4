"""Error kinds shared between the reconciliation core and the entity stores.

Store adapters raise the ``StoreError`` subclasses below; callers match on the
type, never on the message text.
"""

from __future__ import annotations


class InvalidSnapshotError(ValueError):
    """Raised when an import document is malformed or has an unsupported version."""


class InvalidSelectionError(ValueError):
    """Raised when a caller-supplied selection cannot be interpreted."""


class StoreError(RuntimeError):
    """Base class for conditions signalled by the entity stores."""

    def __init__(self, message: str, *, entity_id: str | None = None) -> None:
        super().__init__(message)
        self.entity_id = entity_id


class DuplicateEntityError(StoreError):
    """The entity (or its natural key) already exists."""


class ReferentialConstraintError(StoreError):
    """The operation would leave a dangling reference."""


class EntityNotFoundError(StoreError):
    """The addressed entity does not exist."""
