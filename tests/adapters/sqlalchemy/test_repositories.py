"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session  # noqa: TC002

from librarium.adapters.sqlalchemy.repositories import (
    SqlAlchemyBookRepository,
    SqlAlchemyLocationRepository,
    SqlAlchemyOwnershipRepository,
    constraint_code,
)
from librarium.domain.errors import (
    DuplicateEntityError,
    EntityNotFoundError,
    ReferentialConstraintError,
)
from librarium.domain.model import Book, BookChanges, Location, LocationKind, Ownership


def _location(session: Session, user_id: str = "alice", name: str = "Shelf") -> Location:
    location = Location(user_id=user_id, name=name, type=LocationKind.PHYSICAL)
    SqlAlchemyLocationRepository(session).add(location)
    return location


def _owned_book(session: Session, isbn: str, location: Location) -> Ownership:
    SqlAlchemyBookRepository(session).add(Book(isbn=isbn, title=f"Book {isbn}"))
    assert location.id is not None
    ownership = Ownership(user_id=location.user_id, isbn=isbn, location_id=location.id)
    SqlAlchemyOwnershipRepository(session).add(ownership)
    return ownership


def test_book_repository_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyBookRepository(sqlite_session)
    repository.add(Book(isbn="X", title="Old", author="Someone"))
    sqlite_session.commit()

    updated = repository.update(
        "X", BookChanges(title="New", author=None, thumbnail_url="http://cover", is_doujin=True)
    )
    sqlite_session.commit()

    stored = repository.get("X")
    assert stored is updated
    assert stored.title == "New"
    assert stored.author is None
    assert stored.thumbnail_url == "http://cover"
    assert stored.is_doujin is True
    assert stored.updated_at.tzinfo is not None


def test_book_repository_rejects_duplicates(sqlite_session: Session) -> None:
    repository = SqlAlchemyBookRepository(sqlite_session)
    repository.add(Book(isbn="X", title="First"))

    with pytest.raises(DuplicateEntityError) as exc:
        repository.add(Book(isbn="X", title="Second"))

    assert exc.value.entity_id == "X"


def test_book_repository_missing_rows_raise_not_found(sqlite_session: Session) -> None:
    repository = SqlAlchemyBookRepository(sqlite_session)

    with pytest.raises(EntityNotFoundError):
        repository.update("missing", BookChanges(title="Nope"))
    with pytest.raises(EntityNotFoundError):
        repository.remove("missing")


def test_book_repository_refuses_to_remove_referenced_book(sqlite_session: Session) -> None:
    _owned_book(sqlite_session, "X", _location(sqlite_session))
    repository = SqlAlchemyBookRepository(sqlite_session)

    with pytest.raises(ReferentialConstraintError):
        repository.remove("X")

    assert repository.get("X") is not None


def test_book_repository_lists_only_owned_books(sqlite_session: Session) -> None:
    alice_shelf = _location(sqlite_session, "alice")
    bob_shelf = _location(sqlite_session, "bob")
    _owned_book(sqlite_session, "A", alice_shelf)
    _owned_book(sqlite_session, "B", bob_shelf)
    SqlAlchemyBookRepository(sqlite_session).add(Book(isbn="C", title="Unowned"))

    owned = SqlAlchemyBookRepository(sqlite_session).list_owned_by("alice")

    assert [book.isbn for book in owned] == ["A"]


def test_location_repository_enforces_unique_name_per_owner(sqlite_session: Session) -> None:
    repository = SqlAlchemyLocationRepository(sqlite_session)
    first = _location(sqlite_session, "alice", "Shelf")
    _location(sqlite_session, "bob", "Shelf")

    with pytest.raises(DuplicateEntityError):
        repository.add(Location(user_id="alice", name="Shelf", type=LocationKind.DIGITAL))

    assert first.id is not None
    assert repository.find_by_name("alice", "Shelf") is first
    assert [location.user_id for location in repository.list_by_user("bob")] == ["bob"]


def test_location_repository_remove_cascades_ownerships(sqlite_session: Session) -> None:
    shelf = _location(sqlite_session)
    _owned_book(sqlite_session, "X", shelf)
    sqlite_session.commit()
    assert shelf.id is not None

    SqlAlchemyLocationRepository(sqlite_session).remove(shelf.id)
    sqlite_session.commit()

    assert SqlAlchemyLocationRepository(sqlite_session).get(shelf.id) is None
    assert SqlAlchemyOwnershipRepository(sqlite_session).list_by_user("alice") == []
    with pytest.raises(EntityNotFoundError):
        SqlAlchemyLocationRepository(sqlite_session).remove(shelf.id)


def test_location_kind_round_trips(sqlite_session: Session) -> None:
    repository = SqlAlchemyLocationRepository(sqlite_session)
    repository.add(Location(user_id="alice", name="Kindle", type=LocationKind.DIGITAL))
    sqlite_session.commit()
    sqlite_session.expire_all()

    stored = repository.find_by_name("alice", "Kindle")

    assert stored is not None
    assert stored.type is LocationKind.DIGITAL


def test_ownership_repository_checks_references(sqlite_session: Session) -> None:
    alice_shelf = _location(sqlite_session, "alice")
    bob_shelf = _location(sqlite_session, "bob")
    SqlAlchemyBookRepository(sqlite_session).add(Book(isbn="X", title="Book"))
    repository = SqlAlchemyOwnershipRepository(sqlite_session)
    assert alice_shelf.id is not None
    assert bob_shelf.id is not None

    with pytest.raises(ReferentialConstraintError):
        repository.add(Ownership(user_id="alice", isbn="missing", location_id=alice_shelf.id))
    with pytest.raises(ReferentialConstraintError):
        repository.add(Ownership(user_id="alice", isbn="X", location_id=bob_shelf.id))

    repository.add(Ownership(user_id="alice", isbn="X", location_id=alice_shelf.id))
    with pytest.raises(DuplicateEntityError) as exc:
        repository.add(Ownership(user_id="alice", isbn="X", location_id=alice_shelf.id))

    assert exc.value.entity_id == f"alice:X:{alice_shelf.id}"


def test_ownership_repository_remove(sqlite_session: Session) -> None:
    ownership = _owned_book(sqlite_session, "X", _location(sqlite_session))
    repository = SqlAlchemyOwnershipRepository(sqlite_session)
    assert ownership.id is not None

    repository.remove(ownership.id)

    assert repository.find("alice", "X", ownership.location_id) is None
    with pytest.raises(EntityNotFoundError):
        repository.remove(ownership.id)


def test_ownership_insert_race_rolls_back_only_that_insert(
    sqlite_session: Session,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    shelf = _location(sqlite_session)
    _owned_book(sqlite_session, "A", shelf)
    SqlAlchemyBookRepository(sqlite_session).add(Book(isbn="B", title="Book B"))
    repository = SqlAlchemyOwnershipRepository(sqlite_session)
    assert shelf.id is not None
    monkeypatch.setattr(SqlAlchemyOwnershipRepository, "find", lambda *_args: None)

    with pytest.raises(DuplicateEntityError) as exc:
        repository.add(Ownership(user_id="alice", isbn="A", location_id=shelf.id))
    repository.add(Ownership(user_id="alice", isbn="B", location_id=shelf.id))
    sqlite_session.commit()

    assert exc.value.entity_id == f"alice:A:{shelf.id}"
    assert [item.isbn for item in repository.list_by_user("alice")] == ["A", "B"]


def test_non_unique_integrity_errors_propagate(sqlite_session: Session) -> None:
    repository = SqlAlchemyBookRepository(sqlite_session)

    with pytest.raises(IntegrityError):
        repository.add(Book(isbn="N", title=None))  # type: ignore[arg-type]
    repository.add(Book(isbn="Y", title="Still writable"))
    sqlite_session.commit()

    assert repository.get("N") is None
    assert repository.get("Y") is not None


class _DriverError(Exception):
    def __init__(self, *, sqlite_errorname: str | None = None, pgcode: str | None = None) -> None:
        super().__init__("constraint failed")
        self.sqlite_errorname = sqlite_errorname
        self.pgcode = pgcode


@pytest.mark.parametrize(
    ("driver_error", "expected"),
    [
        (_DriverError(sqlite_errorname="SQLITE_CONSTRAINT_UNIQUE"), "SQLITE_CONSTRAINT_UNIQUE"),
        (_DriverError(pgcode="23503"), "23503"),
        (_DriverError(), None),
    ],
)
def test_constraint_code_reads_driver_details(
    driver_error: _DriverError,
    expected: str | None,
) -> None:
    exc = IntegrityError("INSERT", None, driver_error)

    assert constraint_code(exc) == expected
