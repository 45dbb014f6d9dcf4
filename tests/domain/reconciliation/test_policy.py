from __future__ import annotations

import pytest

from librarium.domain.errors import InvalidSelectionError
from librarium.domain.reconciliation import (
    DEFAULT_PRIORITIES,
    ChangeKind,
    Priority,
    Selection,
    SelectionPolicy,
    coerce_selection,
)


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (ChangeKind.BOOK_ADDITION, Priority.IMPORT),
        (ChangeKind.BOOK_MODIFICATION, Priority.DATABASE),
        (ChangeKind.OWNERSHIP_ADDITION, Priority.IMPORT),
        (ChangeKind.OWNERSHIP_DELETION, Priority.DATABASE),
        (ChangeKind.BOOK_DELETION, Priority.DATABASE),
        (ChangeKind.LOCATION_DELETION, Priority.DATABASE),
    ],
)
def test_unselected_identities_use_change_default(kind: ChangeKind, expected: Priority) -> None:
    policy = SelectionPolicy()

    assert policy.resolve_priority("anything", kind) is expected
    assert DEFAULT_PRIORITIES[kind] is expected


def test_selection_overrides_default() -> None:
    policy = SelectionPolicy.from_selections(
        [Selection(entity_id="X", priority=Priority.DATABASE)]
    )

    assert policy.resolve_priority("X", ChangeKind.BOOK_ADDITION) is Priority.DATABASE
    assert policy.resolve_priority("Y", ChangeKind.BOOK_ADDITION) is Priority.IMPORT


def test_from_selections_accepts_wire_mappings_and_keeps_last() -> None:
    policy = SelectionPolicy.from_selections(
        [
            {"entity_id": "X", "priority": "database"},
            {"entity_id": "X", "priority": "import"},
        ]
    )

    assert policy.selections == {"X": Priority.IMPORT}


def test_prefer_selects_every_identity() -> None:
    policy = SelectionPolicy.prefer(Priority.IMPORT, ["a", "b"])

    assert policy.resolve_priority("a", ChangeKind.BOOK_DELETION) is Priority.IMPORT
    assert policy.resolve_priority("b", ChangeKind.LOCATION_DELETION) is Priority.IMPORT


def test_kind_override_applies_below_explicit_selections() -> None:
    policy = SelectionPolicy(
        selections={"alice:X:1": Priority.IMPORT},
        overrides={ChangeKind.OWNERSHIP_ADDITION: Priority.DATABASE},
    )

    assert policy.resolve_priority("alice:X:1", ChangeKind.OWNERSHIP_ADDITION) is Priority.IMPORT
    assert policy.resolve_priority("alice:Y:1", ChangeKind.OWNERSHIP_ADDITION) is (
        Priority.DATABASE
    )
    assert policy.resolve_priority("Y", ChangeKind.BOOK_ADDITION) is Priority.IMPORT


@pytest.mark.parametrize(
    "raw",
    [
        {"priority": "import"},
        {"entity_id": "", "priority": "import"},
        {"entity_id": "X", "priority": "both"},
        {"entity_id": "X"},
    ],
)
def test_coerce_selection_rejects_invalid_input(raw: dict[str, object]) -> None:
    with pytest.raises(InvalidSelectionError):
        coerce_selection(raw)
