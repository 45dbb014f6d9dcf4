"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from librarium.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLibraryUnitOfWork,
    is_started,
    startup,
)
from librarium.config import get_library_config
from librarium.domain.ports.unit_of_work import LibraryUnitOfWork
from librarium.domain.reconciliation import (
    ChangeKind,
    DiffResult,
    ImportStats,
    Priority,
    Selection,
    SelectionPolicy,
    Snapshot,
    apply_import,
    detect_diff,
    export_snapshot,
    parse_snapshot,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

UnitOfWorkFactory = Callable[[], LibraryUnitOfWork]


log = getLogger(__name__)


def _resolve_factory(unit_of_work_factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if unit_of_work_factory is not None:
        return unit_of_work_factory
    if not is_started():
        startup()
    return SqlAlchemyLibraryUnitOfWork


def _resolve_owner(owner_id: str | None) -> str:
    return owner_id or get_library_config().default_user_id


def _coerce_snapshot(raw: object) -> Snapshot:
    return raw if isinstance(raw, Snapshot) else parse_snapshot(raw)


def export_library(
    *,
    owner_id: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Snapshot:
    """Export the library of ``owner_id`` (or the configured default owner)."""

    owner = _resolve_owner(owner_id)
    log.info("Starting export for %s", owner)
    return export_snapshot(owner, unit_of_work_factory=_resolve_factory(unit_of_work_factory))


def detect_import_diff(
    raw: object,
    *,
    owner_id: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DiffResult:
    """Validate an import document and compare it with the live library."""

    snapshot = _coerce_snapshot(raw)
    owner = _resolve_owner(owner_id)
    log.info("Starting import diff for %s (exported at %s)", owner, snapshot.exported_at)
    return detect_diff(owner, snapshot, unit_of_work_factory=_resolve_factory(unit_of_work_factory))


def apply_import_file(
    raw: object,
    *,
    owner_id: str | None = None,
    selections: Iterable[Selection | Mapping[str, object]] = (),
    prefer: Priority | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportStats:
    """Validate an import document and merge it into the live library.

    ``prefer`` picks one side for every identity of the current diff, and for
    ownerships whose location only appears during the merge, before the explicit
    ``selections`` are laid on top.
    """

    snapshot = _coerce_snapshot(raw)
    owner = _resolve_owner(owner_id)
    factory = _resolve_factory(unit_of_work_factory)

    policy = SelectionPolicy()
    if prefer is not None:
        diff = detect_diff(owner, snapshot, unit_of_work_factory=factory)
        entity_ids = [
            *diff.entity_ids("additions"),
            *diff.entity_ids("modifications"),
            *diff.entity_ids("deletions"),
        ]
        policy = SelectionPolicy.prefer(prefer, entity_ids)
        # ownerships of locations created in phase 1 have no live key before the merge
        policy.overrides[ChangeKind.OWNERSHIP_ADDITION] = prefer
        log.info("Preferring %s side for %s identities", prefer.value, len(entity_ids))
    policy.selections.update(SelectionPolicy.from_selections(selections).selections)

    log.info(
        "Starting import for %s: selections=%s",
        owner,
        len(policy.selections),
    )
    stats = apply_import(owner, snapshot, policy, unit_of_work_factory=factory)
    log.info(
        "Finished import: added=%s, modified=%s, deleted=%s",
        stats.added,
        stats.modified,
        stats.deleted,
    )
    return stats
