"""Result types produced by diff detection and consumed by the merge.

Each difference is typed per entity kind and carries the live ("database") and/or
snapshot ("import") version of the record; at least one side is always present.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from librarium.domain.model import Book, Location, Ownership

    from .snapshot import SnapshotBook, SnapshotLocation, SnapshotOwnership


class EntityKind(StrEnum):
    BOOK = "book"
    LOCATION = "location"
    OWNERSHIP = "ownership"


class Priority(StrEnum):
    """Which side wins a conflict: the live store or the import file."""

    DATABASE = "database"
    IMPORT = "import"


class UnresolvedReason(StrEnum):
    """Why a snapshot ownership could not be matched against live locations."""

    LOCATION_PENDING = "location_pending"  # snapshot location not materialized yet
    LOCATION_MISSING = "location_missing"  # no snapshot location carries the id


@dataclass(frozen=True, slots=True, kw_only=True)
class BookDiff:
    entity_id: str
    database: Book | None = None
    imported: SnapshotBook | None = None
    fields_changed: tuple[str, ...] = ()
    type: Literal[EntityKind.BOOK] = EntityKind.BOOK

    def __post_init__(self) -> None:
        _require_side(self.database, self.imported)

    def to_payload(self) -> dict[str, object]:
        return _difference_payload(self, self.database, self.imported, self.fields_changed)


@dataclass(frozen=True, slots=True, kw_only=True)
class LocationDiff:
    entity_id: str
    database: Location | None = None
    imported: SnapshotLocation | None = None
    type: Literal[EntityKind.LOCATION] = EntityKind.LOCATION

    def __post_init__(self) -> None:
        _require_side(self.database, self.imported)

    def to_payload(self) -> dict[str, object]:
        return _difference_payload(self, self.database, self.imported, ())


@dataclass(frozen=True, slots=True, kw_only=True)
class OwnershipDiff:
    entity_id: str
    database: Ownership | None = None
    imported: SnapshotOwnership | None = None
    type: Literal[EntityKind.OWNERSHIP] = EntityKind.OWNERSHIP

    def __post_init__(self) -> None:
        _require_side(self.database, self.imported)

    def to_payload(self) -> dict[str, object]:
        return _difference_payload(self, self.database, self.imported, ())


type Difference = BookDiff | LocationDiff | OwnershipDiff


@dataclass(frozen=True, slots=True, kw_only=True)
class UnresolvedOwnership:
    """Snapshot ownership whose location id has no live counterpart yet."""

    imported: SnapshotOwnership
    reason: UnresolvedReason

    def to_payload(self) -> dict[str, object]:
        return {"import": self.imported.model_dump(mode="json"), "reason": self.reason.value}


@dataclass(slots=True)
class DiffResult:
    additions: list[Difference] = field(default_factory=list["Difference"])
    modifications: list[Difference] = field(default_factory=list["Difference"])
    deletions: list[Difference] = field(default_factory=list["Difference"])
    unresolved: list[UnresolvedOwnership] = field(default_factory=list[UnresolvedOwnership])

    @property
    def is_empty(self) -> bool:
        return not (self.additions or self.modifications or self.deletions)

    def entity_ids(
        self,
        bucket: Literal["additions", "modifications", "deletions"],
        kind: EntityKind | None = None,
    ) -> list[str]:
        differences: list[Difference] = getattr(self, bucket)
        return [diff.entity_id for diff in differences if kind is None or diff.type == kind]

    def to_payload(self) -> dict[str, object]:
        return {
            "additions": [diff.to_payload() for diff in self.additions],
            "modifications": [diff.to_payload() for diff in self.modifications],
            "deletions": [diff.to_payload() for diff in self.deletions],
            "unresolved": [item.to_payload() for item in self.unresolved],
        }


@dataclass(frozen=True, slots=True)
class Selection:
    entity_id: str
    priority: Priority


@dataclass(slots=True)
class ImportStats:
    """Counts of applied book and ownership changes."""

    added: int = 0
    modified: int = 0
    deleted: int = 0

    def to_payload(self) -> dict[str, int]:
        return {"added": self.added, "modified": self.modified, "deleted": self.deleted}


def _require_side(database: object | None, imported: object | None) -> None:
    if database is None and imported is None:
        raise ValueError("Difference requires a database or an import side")


def _difference_payload(
    diff: Difference,
    database: Book | Location | Ownership | None,
    imported: SnapshotBook | SnapshotLocation | SnapshotOwnership | None,
    fields_changed: tuple[str, ...],
) -> dict[str, object]:
    entity_data: dict[str, object] = {}
    if database is not None:
        entity_data["database"] = entity_payload(database)
    if imported is not None:
        entity_data["import"] = imported.model_dump(mode="json")
    payload: dict[str, object] = {
        "type": diff.type.value,
        "entity_id": diff.entity_id,
        "entity_data": entity_data,
    }
    if fields_changed:
        payload["fields_changed"] = list(fields_changed)
    return payload


def entity_payload(entity: Book | Location | Ownership) -> dict[str, object]:
    """Render a live entity as JSON-compatible values."""

    payload: dict[str, object] = {}
    for item in fields(entity):
        value = getattr(entity, item.name)
        payload[item.name] = value.isoformat() if isinstance(value, datetime) else value
    return payload
