"""Repository implementations backed by SQLAlchemy sessions.

Store conditions are reported through the typed errors of
``librarium.domain.errors``. Natural-key clashes are checked before writing. An
insert that still trips a constraint (a concurrent writer won the race) runs in its
own savepoint, so only that insert is rolled back and the unit of work stays usable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, cast

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from librarium.adapters.sqlalchemy.mappings import book_table, location_table, ownership_table
from librarium.domain.errors import (
    DuplicateEntityError,
    EntityNotFoundError,
    ReferentialConstraintError,
)
from librarium.domain.model import Book, Location, Ownership
from librarium.domain.reconciliation.keys import ownership_key

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from librarium.domain.model import BookChanges

# sqlite3 extended error names and PostgreSQL SQLSTATE codes
UNIQUE_VIOLATIONS: Final[frozenset[str]] = frozenset(
    {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY", "23505"}
)
FOREIGN_KEY_VIOLATIONS: Final[frozenset[str]] = frozenset(
    {"SQLITE_CONSTRAINT_FOREIGNKEY", "23503"}
)


def constraint_code(exc: IntegrityError) -> str | None:
    """Return the driver's code for the violated constraint, if it reports one."""

    code = getattr(exc.orig, "sqlite_errorname", None) or getattr(exc.orig, "pgcode", None)
    return str(code) if code is not None else None


class _SqlAlchemyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _insert(self, entity: object, entity_id: str) -> None:
        try:
            with self.session.begin_nested():
                self.session.add(entity)
        except IntegrityError as exc:
            code = constraint_code(exc)
            if code in UNIQUE_VIOLATIONS:
                raise DuplicateEntityError(
                    f"Store rejected {entity_id} as a duplicate", entity_id=entity_id
                ) from exc
            if code in FOREIGN_KEY_VIOLATIONS:
                raise ReferentialConstraintError(
                    f"Store rejected {entity_id}: referenced row is missing",
                    entity_id=entity_id,
                ) from exc
            raise


class SqlAlchemyBookRepository(_SqlAlchemyRepository):
    def add(self, entity: Book) -> None:
        if self.get(entity.isbn) is not None:
            raise DuplicateEntityError(
                f"Book {entity.isbn} is already registered", entity_id=entity.isbn
            )
        self._insert(entity, entity.isbn)

    def get(self, isbn: str) -> Book | None:
        return self.session.get(Book, isbn)

    def update(self, isbn: str, changes: BookChanges) -> Book:
        book = self.get(isbn)
        if book is None:
            raise EntityNotFoundError(f"Book {isbn} not found", entity_id=isbn)
        book.apply(changes)
        self.session.flush()
        return book

    def remove(self, isbn: str) -> None:
        book = self.get(isbn)
        if book is None:
            raise EntityNotFoundError(f"Book {isbn} not found", entity_id=isbn)
        references = self.session.execute(
            select(func.count())
            .select_from(ownership_table)
            .where(ownership_table.c.isbn == isbn)
        ).scalar_one()
        if references:
            raise ReferentialConstraintError(
                f"Book {isbn} is still referenced by {references} ownership(s)",
                entity_id=isbn,
            )
        self.session.delete(book)
        self.session.flush()

    def list_owned_by(self, user_id: str) -> list[Book]:
        owned = select(ownership_table.c.isbn).where(ownership_table.c.user_id == user_id)
        stmt = select(Book).where(book_table.c.isbn.in_(owned)).order_by(book_table.c.isbn)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyLocationRepository(_SqlAlchemyRepository):
    def add(self, entity: Location) -> None:
        if self.find_by_name(entity.user_id, entity.name) is not None:
            raise DuplicateEntityError(
                f"Location {entity.name!r} is already registered", entity_id=entity.name
            )
        self._insert(entity, entity.name)

    def get(self, location_id: int) -> Location | None:
        return self.session.get(Location, location_id)

    def find_by_name(self, user_id: str, name: str) -> Location | None:
        stmt = (
            select(Location)
            .where(location_table.c.user_id == user_id)
            .where(location_table.c.name == name)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def remove(self, location_id: int) -> None:
        location = self.get(location_id)
        if location is None:
            raise EntityNotFoundError(
                f"Location {location_id} not found", entity_id=str(location_id)
            )
        dependents = select(Ownership).where(ownership_table.c.location_id == location_id)
        for ownership in self.session.execute(dependents).scalars():
            self.session.delete(ownership)
        self.session.flush()
        self.session.delete(location)
        self.session.flush()

    def list_by_user(self, user_id: str) -> list[Location]:
        stmt = (
            select(Location)
            .where(location_table.c.user_id == user_id)
            .order_by(location_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyOwnershipRepository(_SqlAlchemyRepository):
    def add(self, entity: Ownership) -> None:
        entity_id = ownership_key(entity.user_id, entity.isbn, entity.location_id)
        if self.session.get(Book, entity.isbn) is None:
            raise ReferentialConstraintError(
                f"Book {entity.isbn} does not exist", entity_id=entity_id
            )
        location = self.session.get(Location, entity.location_id)
        if location is None or location.user_id != entity.user_id:
            raise ReferentialConstraintError(
                f"Location {entity.location_id} does not belong to {entity.user_id}",
                entity_id=entity_id,
            )
        if self.find(entity.user_id, entity.isbn, entity.location_id) is not None:
            raise DuplicateEntityError(
                f"Book {entity.isbn} is already registered at location {entity.location_id}",
                entity_id=entity_id,
            )
        self._insert(entity, entity_id)

    def get(self, ownership_id: int) -> Ownership | None:
        return self.session.get(Ownership, ownership_id)

    def find(self, user_id: str, isbn: str, location_id: int) -> Ownership | None:
        stmt = (
            select(Ownership)
            .where(ownership_table.c.user_id == user_id)
            .where(ownership_table.c.isbn == isbn)
            .where(ownership_table.c.location_id == location_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def remove(self, ownership_id: int) -> None:
        ownership = self.get(ownership_id)
        if ownership is None:
            raise EntityNotFoundError(
                f"Ownership {ownership_id} not found", entity_id=str(ownership_id)
            )
        self.session.delete(ownership)
        self.session.flush()

    def list_by_user(self, user_id: str) -> list[Ownership]:
        stmt = (
            select(Ownership)
            .where(ownership_table.c.user_id == user_id)
            .order_by(ownership_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from librarium.domain.ports.persistence import (
        BookRepository,
        LocationRepository,
        OwnershipRepository,
    )

    _session_stub = cast("Session", object())
    _book_repo: BookRepository = SqlAlchemyBookRepository(_session_stub)
    _location_repo: LocationRepository = SqlAlchemyLocationRepository(_session_stub)
    _ownership_repo: OwnershipRepository = SqlAlchemyOwnershipRepository(_session_stub)
