"""Ports for persisting library entities.

Every mutating call signals store conditions through the typed errors in
``librarium.domain.errors``: ``DuplicateEntityError`` on a natural-key clash,
``ReferentialConstraintError`` when a reference would dangle, and
``EntityNotFoundError`` when the addressed row is gone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from librarium.domain.model import Book, Location, Ownership

if TYPE_CHECKING:
    from collections.abc import Sequence

    from librarium.domain.model import BookChanges


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class BookRepository(Repository[Book], Protocol):
    """Persistence contract for books keyed by ISBN or generated token."""

    def get(self, isbn: str) -> Book | None: ...

    def update(self, isbn: str, changes: BookChanges) -> Book: ...

    def remove(self, isbn: str) -> None: ...

    def list_owned_by(self, user_id: str) -> Sequence[Book]: ...


@runtime_checkable
class LocationRepository(Repository[Location], Protocol):
    """Persistence contract for owner-scoped locations."""

    def get(self, location_id: int) -> Location | None: ...

    def find_by_name(self, user_id: str, name: str) -> Location | None: ...

    def remove(self, location_id: int) -> None: ...

    def list_by_user(self, user_id: str) -> Sequence[Location]: ...


@runtime_checkable
class OwnershipRepository(Repository[Ownership], Protocol):
    """Persistence contract for the owner x book x location relation."""

    def find(self, user_id: str, isbn: str, location_id: int) -> Ownership | None: ...

    def remove(self, ownership_id: int) -> None: ...

    def list_by_user(self, user_id: str) -> Sequence[Ownership]: ...
