"""Import reconciliation for exported library snapshots.

Flow:
1) ``parse_snapshot`` validates an exported document
2) ``detect_diff`` classifies additions, modifications and deletions per entity kind
3) the caller reviews the diff and picks a side per conflicting identity
4) ``apply_import`` merges the snapshot into the live store phase by phase
"""

from __future__ import annotations

from .apply import apply_import
from .contracts import (
    BookDiff,
    Difference,
    DiffResult,
    EntityKind,
    ImportStats,
    LocationDiff,
    OwnershipDiff,
    Priority,
    Selection,
    UnresolvedOwnership,
    UnresolvedReason,
)
from .diff import detect_diff
from .export import export_file_name, export_snapshot
from .keys import (
    book_key,
    location_key,
    ownership_key,
    parse_location_key,
    parse_ownership_key,
)
from .policy import DEFAULT_PRIORITIES, ChangeKind, SelectionPolicy, coerce_selection
from .snapshot import (
    SUPPORTED_SNAPSHOT_VERSION,
    Snapshot,
    SnapshotBook,
    SnapshotData,
    SnapshotLocation,
    SnapshotOwnership,
    parse_snapshot,
    parse_snapshot_json,
)

__all__ = [
    "DEFAULT_PRIORITIES",
    "SUPPORTED_SNAPSHOT_VERSION",
    "BookDiff",
    "ChangeKind",
    "DiffResult",
    "Difference",
    "EntityKind",
    "ImportStats",
    "LocationDiff",
    "OwnershipDiff",
    "Priority",
    "Selection",
    "SelectionPolicy",
    "Snapshot",
    "SnapshotBook",
    "SnapshotData",
    "SnapshotLocation",
    "SnapshotOwnership",
    "UnresolvedOwnership",
    "UnresolvedReason",
    "apply_import",
    "book_key",
    "coerce_selection",
    "detect_diff",
    "export_file_name",
    "export_snapshot",
    "location_key",
    "ownership_key",
    "parse_location_key",
    "parse_ownership_key",
    "parse_snapshot",
    "parse_snapshot_json",
]
