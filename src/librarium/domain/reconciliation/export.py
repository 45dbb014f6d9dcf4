"""Export of one owner's library as a snapshot document."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from librarium.domain.model import utcnow

from .snapshot import (
    SUPPORTED_SNAPSHOT_VERSION,
    Snapshot,
    SnapshotBook,
    SnapshotData,
    SnapshotLocation,
    SnapshotOwnership,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date, datetime

    from librarium.domain.model import Book, Location, Ownership
    from librarium.domain.ports.unit_of_work import LibraryUnitOfWork

log = logging.getLogger(__name__)


def export_snapshot(
    owner_id: str,
    *,
    unit_of_work_factory: Callable[[], LibraryUnitOfWork],
    clock: Callable[[], datetime] = utcnow,
) -> Snapshot:
    """Snapshot the books, locations and ownerships of ``owner_id``.

    Only books the owner holds through at least one ownership are exported.
    """

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        books = [snapshot_book(book) for book in repositories.books.list_owned_by(owner_id)]
        locations = [
            snapshot_location(location)
            for location in repositories.locations.list_by_user(owner_id)
        ]
        ownerships = [
            snapshot_ownership(ownership)
            for ownership in repositories.ownerships.list_by_user(owner_id)
        ]

    log.info(
        "Exported library of %s: books=%s, locations=%s, ownerships=%s",
        owner_id,
        len(books),
        len(locations),
        len(ownerships),
    )
    return Snapshot(
        version=SUPPORTED_SNAPSHOT_VERSION,
        exported_at=clock().isoformat(),
        data=SnapshotData(books=books, locations=locations, ownerships=ownerships),
    )


def export_file_name(day: date) -> str:
    return f"books_export_{day.isoformat()}.json"


def snapshot_book(book: Book) -> SnapshotBook:
    return SnapshotBook(
        isbn=book.isbn,
        title=book.title,
        author=book.author,
        thumbnail_url=book.thumbnail_url,
        is_doujin=book.is_doujin,
        created_at=book.created_at.isoformat(),
        updated_at=book.updated_at.isoformat(),
    )


def snapshot_location(location: Location) -> SnapshotLocation:
    if location.id is None:
        raise ValueError(f"Location {location.name!r} has not been stored yet")
    return SnapshotLocation(
        id=location.id,
        name=location.name,
        type=location.type,
        created_at=location.created_at.isoformat(),
        updated_at=location.updated_at.isoformat(),
    )


def snapshot_ownership(ownership: Ownership) -> SnapshotOwnership:
    return SnapshotOwnership(
        user_id=ownership.user_id,
        isbn=ownership.isbn,
        location_id=ownership.location_id,
        created_at=ownership.created_at.isoformat(),
    )
