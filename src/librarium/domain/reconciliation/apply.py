"""Selective merge of an import snapshot into one owner's live library.

Phases run strictly in order and each one is committed before the next starts:

1. materialize snapshot locations and build the location remap
2. create or update snapshot books
3. create snapshot ownerships
4. delete live ownerships missing from the snapshot
5. delete live books missing from the snapshot
6. delete live locations missing from the snapshot

Locations and books exist before ownerships reference them, and removals come last
so that nothing left behind dangles. A failure aborts the remaining phases; phases
already committed stay applied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from librarium.domain.errors import (
    DuplicateEntityError,
    EntityNotFoundError,
    ReferentialConstraintError,
)
from librarium.domain.model import Book, Location, Ownership

from .contracts import ImportStats, Priority, Selection
from .diff import index_locations, index_snapshot_books
from .keys import ownership_key
from .policy import ChangeKind, SelectionPolicy

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from librarium.domain.ports.unit_of_work import LibraryRepositories, LibraryUnitOfWork

    from .snapshot import Snapshot

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _MergeRun:
    owner_id: str
    snapshot: Snapshot
    policy: SelectionPolicy
    repositories: LibraryRepositories
    stats: ImportStats = field(default_factory=ImportStats)
    live_locations: dict[str, Location] = field(default_factory=dict[str, Location])
    location_remap: dict[int, int] = field(default_factory=dict[int, int])
    snapshot_ownership_keys: set[str] = field(default_factory=set[str])

    def wants_import(self, entity_id: str, kind: ChangeKind) -> bool:
        return self.policy.resolve_priority(entity_id, kind) is Priority.IMPORT


def apply_import(
    owner_id: str,
    snapshot: Snapshot,
    selections: SelectionPolicy | Iterable[Selection | Mapping[str, object]] = (),
    *,
    unit_of_work_factory: Callable[[], LibraryUnitOfWork],
) -> ImportStats:
    """Apply ``snapshot`` to the live store of ``owner_id`` honouring ``selections``."""

    policy = (
        selections
        if isinstance(selections, SelectionPolicy)
        else SelectionPolicy.from_selections(selections)
    )

    with unit_of_work_factory() as uow:
        run = _MergeRun(
            owner_id=owner_id,
            snapshot=snapshot,
            policy=policy,
            repositories=uow.repositories,
        )
        _materialize_locations(run)
        uow.commit()
        _merge_books(run)
        uow.commit()
        _add_ownerships(run)
        uow.commit()
        owned_books = list(run.repositories.books.list_owned_by(owner_id))
        _remove_ownerships(run)
        uow.commit()
        _remove_books(run, owned_books)
        uow.commit()
        _remove_locations(run)
        uow.commit()

    log.info(
        "Applied import for %s: added=%s, modified=%s, deleted=%s",
        owner_id,
        run.stats.added,
        run.stats.modified,
        run.stats.deleted,
    )
    return run.stats


def _materialize_locations(run: _MergeRun) -> None:
    """Find or create every snapshot location, regardless of selections."""

    locations = run.repositories.locations
    run.live_locations = index_locations(locations.list_by_user(run.owner_id))
    created = 0
    for imported in run.snapshot.data.locations:
        live = run.live_locations.get(imported.key)
        if live is None:
            live = Location(user_id=run.owner_id, name=imported.name, type=imported.type)
            locations.add(live)
            run.live_locations[imported.key] = live
            created += 1
        if live.id is None:
            raise RuntimeError(f"Location store did not assign an id to {imported.key!r}")
        run.location_remap[imported.id] = live.id
    log.info("Phase locations: created=%s, remapped=%s", created, len(run.location_remap))


def _merge_books(run: _MergeRun) -> None:
    books = run.repositories.books
    for key, imported in index_snapshot_books(run.snapshot.data.books).items():
        exists = books.get(key) is not None
        kind = ChangeKind.BOOK_MODIFICATION if exists else ChangeKind.BOOK_ADDITION
        if not run.wants_import(key, kind):
            continue
        changes = imported.changes()
        if exists:
            books.update(key, changes)
            run.stats.modified += 1
        else:
            books.add(
                Book(
                    isbn=key,
                    title=changes.title,
                    author=changes.author,
                    thumbnail_url=changes.thumbnail_url,
                    is_doujin=changes.is_doujin,
                )
            )
            run.stats.added += 1
    log.info("Phase books: added=%s, modified=%s", run.stats.added, run.stats.modified)


def _add_ownerships(run: _MergeRun) -> None:
    ownerships = run.repositories.ownerships
    added = 0
    for imported in run.snapshot.data.ownerships:
        if imported.user_id != run.owner_id:
            continue
        location_id = run.location_remap.get(imported.location_id)
        if location_id is None:
            log.debug(
                "Skipping ownership of %s: location %s is not in the snapshot",
                imported.isbn,
                imported.location_id,
            )
            continue
        key = ownership_key(run.owner_id, imported.isbn, location_id)
        run.snapshot_ownership_keys.add(key)
        if not run.wants_import(key, ChangeKind.OWNERSHIP_ADDITION):
            continue
        try:
            ownerships.add(
                Ownership(user_id=run.owner_id, isbn=imported.isbn, location_id=location_id)
            )
        except DuplicateEntityError:
            log.debug("Ownership %s already exists", key)
            continue
        added += 1
    run.stats.added += added
    log.info("Phase ownership additions: added=%s", added)


def _remove_ownerships(run: _MergeRun) -> None:
    ownerships = run.repositories.ownerships
    deleted = 0
    for live in ownerships.list_by_user(run.owner_id):
        key = ownership_key(live.user_id, live.isbn, live.location_id)
        if key in run.snapshot_ownership_keys:
            continue
        if not run.wants_import(key, ChangeKind.OWNERSHIP_DELETION) or live.id is None:
            continue
        ownerships.remove(live.id)
        deleted += 1
    run.stats.deleted += deleted
    log.info("Phase ownership deletions: deleted=%s", deleted)


def _remove_books(run: _MergeRun, owned_books: Iterable[Book]) -> None:
    books = run.repositories.books
    imported_keys = set(index_snapshot_books(run.snapshot.data.books))
    deleted = 0
    for live in owned_books:
        if live.isbn in imported_keys:
            continue
        if not run.wants_import(live.isbn, ChangeKind.BOOK_DELETION):
            continue
        try:
            books.remove(live.isbn)
        except ReferentialConstraintError:
            log.info("Keeping book %s: ownerships still reference it", live.isbn)
            continue
        deleted += 1
    run.stats.deleted += deleted
    log.info("Phase book deletions: deleted=%s", deleted)


def _remove_locations(run: _MergeRun) -> None:
    locations = run.repositories.locations
    imported_keys = {location.key for location in run.snapshot.data.locations}
    deleted = 0
    for key, live in run.live_locations.items():
        if key in imported_keys:
            continue
        if not run.wants_import(key, ChangeKind.LOCATION_DELETION) or live.id is None:
            continue
        try:
            locations.remove(live.id)
        except EntityNotFoundError:
            log.debug("Location %s was already removed", key)
            continue
        deleted += 1
    run.stats.deleted += deleted
    log.info("Phase location deletions: deleted=%s", deleted)
