"""Diff detection between an import snapshot and one owner's live library.

Books match on ISBN/token, locations on ``name:type`` (surrogate ids are assigned
independently by every store, so they never match directly), and ownerships on
``owner:isbn:location_id`` after snapshot location ids have been translated into
live ids through the location remap.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .contracts import (
    BookDiff,
    DiffResult,
    LocationDiff,
    OwnershipDiff,
    UnresolvedOwnership,
    UnresolvedReason,
)
from .keys import location_key, ownership_key

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from librarium.domain.model import Book, Location, Ownership
    from librarium.domain.ports.unit_of_work import LibraryUnitOfWork

    from .snapshot import Snapshot, SnapshotBook, SnapshotLocation, SnapshotOwnership

log = logging.getLogger(__name__)

BOOK_COMPARED_FIELDS: Final[tuple[str, ...]] = ("title", "author", "thumbnail_url", "is_doujin")


def detect_diff(
    owner_id: str,
    snapshot: Snapshot,
    *,
    unit_of_work_factory: Callable[[], LibraryUnitOfWork],
) -> DiffResult:
    """Classify every book, location and ownership into additions/modifications/deletions.

    Read-only; only rows of ``owner_id`` are consulted.
    """

    result = DiffResult()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        live_books = repositories.books.list_owned_by(owner_id)
        live_locations = index_locations(repositories.locations.list_by_user(owner_id))
        live_ownerships = repositories.ownerships.list_by_user(owner_id)

        _diff_books(result, live_books, snapshot.data.books)
        _diff_locations(result, live_locations, snapshot.data.locations)
        _diff_ownerships(result, owner_id, live_ownerships, live_locations, snapshot)

    log.info(
        "Detected import diff for %s: additions=%s, modifications=%s, deletions=%s, "
        "unresolved=%s",
        owner_id,
        len(result.additions),
        len(result.modifications),
        len(result.deletions),
        len(result.unresolved),
    )
    return result


def index_snapshot_books(books: Iterable[SnapshotBook]) -> dict[str, SnapshotBook]:
    """Snapshot books by key; entries without a key cannot be matched and are skipped."""

    indexed: dict[str, SnapshotBook] = {}
    for book in books:
        key = book.key
        if key is None:
            log.debug("Skipping snapshot book without ISBN: %s", book.title)
            continue
        indexed[key] = book
    return indexed


def index_locations(locations: Iterable[Location]) -> dict[str, Location]:
    return {location_key(location.name, location.type): location for location in locations}


def build_location_remap(
    snapshot_locations: Iterable[SnapshotLocation],
    live_locations: Mapping[str, Location],
) -> dict[int, int]:
    """Translate snapshot location ids into live ids by matching ``name:type``."""

    remap: dict[int, int] = {}
    for imported in snapshot_locations:
        live = live_locations.get(imported.key)
        if live is not None and live.id is not None:
            remap[imported.id] = live.id
    return remap


def changed_book_fields(live: Book, imported: SnapshotBook) -> tuple[str, ...]:
    incoming = imported.changes()
    return tuple(
        name for name in BOOK_COMPARED_FIELDS if getattr(live, name) != getattr(incoming, name)
    )


def _diff_books(
    result: DiffResult,
    live_books: Sequence[Book],
    snapshot_books: Sequence[SnapshotBook],
) -> None:
    live_by_key = {book.isbn: book for book in live_books}
    imported_by_key = index_snapshot_books(snapshot_books)

    for key, imported in imported_by_key.items():
        live = live_by_key.get(key)
        if live is None:
            result.additions.append(BookDiff(entity_id=key, imported=imported))
            continue
        changed = changed_book_fields(live, imported)
        if changed:
            result.modifications.append(
                BookDiff(entity_id=key, database=live, imported=imported, fields_changed=changed)
            )

    for key, live in live_by_key.items():
        if key not in imported_by_key:
            result.deletions.append(BookDiff(entity_id=key, database=live))


def _diff_locations(
    result: DiffResult,
    live_by_key: Mapping[str, Location],
    snapshot_locations: Sequence[SnapshotLocation],
) -> None:
    imported_by_key = {location.key: location for location in snapshot_locations}

    # name and type are the whole identity, so a match is never a modification
    for key, imported in imported_by_key.items():
        if key not in live_by_key:
            result.additions.append(LocationDiff(entity_id=key, imported=imported))

    for key, live in live_by_key.items():
        if key not in imported_by_key:
            result.deletions.append(LocationDiff(entity_id=key, database=live))


def _diff_ownerships(
    result: DiffResult,
    owner_id: str,
    live_ownerships: Sequence[Ownership],
    live_locations: Mapping[str, Location],
    snapshot: Snapshot,
) -> None:
    remap = build_location_remap(snapshot.data.locations, live_locations)
    snapshot_location_ids = {location.id for location in snapshot.data.locations}

    live_by_key = {
        ownership_key(item.user_id, item.isbn, item.location_id): item for item in live_ownerships
    }
    imported_by_key: dict[str, SnapshotOwnership] = {}
    for imported in snapshot.data.ownerships:
        if imported.user_id != owner_id:
            continue
        live_location_id = remap.get(imported.location_id)
        if live_location_id is None:
            reason = (
                UnresolvedReason.LOCATION_PENDING
                if imported.location_id in snapshot_location_ids
                else UnresolvedReason.LOCATION_MISSING
            )
            result.unresolved.append(UnresolvedOwnership(imported=imported, reason=reason))
            continue
        key = ownership_key(imported.user_id, imported.isbn, live_location_id)
        imported_by_key[key] = imported

    for key, imported in imported_by_key.items():
        if key not in live_by_key:
            result.additions.append(OwnershipDiff(entity_id=key, imported=imported))

    for key, live in live_by_key.items():
        if key not in imported_by_key:
            result.deletions.append(OwnershipDiff(entity_id=key, database=live))
