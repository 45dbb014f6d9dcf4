from __future__ import annotations

import json

import pytest

from librarium.domain.errors import InvalidSnapshotError
from librarium.domain.model import LocationKind
from librarium.domain.reconciliation import (
    SUPPORTED_SNAPSHOT_VERSION,
    parse_snapshot,
    parse_snapshot_json,
)
from tests.helpers.library import book_entry, location_entry, ownership_entry, snapshot_payload


def test_parse_snapshot_returns_typed_entries() -> None:
    payload = snapshot_payload(
        books=[book_entry("9784000000001", "Dune", author="Herbert")],
        locations=[location_entry(7, "Shelf", "Digital")],
        ownerships=[ownership_entry("alice", "9784000000001", 7)],
    )

    snapshot = parse_snapshot(payload)

    assert snapshot.version == SUPPORTED_SNAPSHOT_VERSION
    assert snapshot.exported_at == "2024-06-01T12:00:00+00:00"
    assert snapshot.data.books[0].key == "9784000000001"
    assert snapshot.data.books[0].author == "Herbert"
    assert snapshot.data.locations[0].type is LocationKind.DIGITAL
    assert snapshot.data.locations[0].key == "Shelf:Digital"
    assert snapshot.data.ownerships[0].location_id == 7


def test_parse_snapshot_accepts_empty_sections() -> None:
    snapshot = parse_snapshot({"version": "1.0", "exported_at": "2024-06-01", "data": {}})

    assert snapshot.data.books == []
    assert snapshot.data.locations == []
    assert snapshot.data.ownerships == []


def test_parse_snapshot_does_not_normalize_entries() -> None:
    payload = snapshot_payload(books=[book_entry("  isbn-with-spaces ", "  Title  ")])

    snapshot = parse_snapshot(payload)

    assert snapshot.data.books[0].isbn == "  isbn-with-spaces "
    assert snapshot.data.books[0].title == "  Title  "


def test_book_without_isbn_has_no_key() -> None:
    snapshot = parse_snapshot(snapshot_payload(books=[book_entry(None, "Zine")]))

    assert snapshot.data.books[0].key is None


def test_book_changes_fold_empty_strings_to_none() -> None:
    snapshot = parse_snapshot(
        snapshot_payload(books=[book_entry("1", "Dune", author="", thumbnail_url="")])
    )

    changes = snapshot.data.books[0].changes()

    assert changes.author is None
    assert changes.thumbnail_url is None


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("not a mapping", "JSON object"),
        ({"exported_at": "x", "data": {}}, "version is missing"),
        ({"version": "2.0", "exported_at": "x", "data": {}}, "Unsupported snapshot version: 2.0"),
        ({"version": "1.0", "data": {}}, "export timestamp is missing"),
        ({"version": "1.0", "exported_at": "x"}, "data section"),
        ({"version": "1.0", "exported_at": "x", "data": []}, "data section"),
        (
            {"version": "1.0", "exported_at": "x", "data": {"books": {}}},
            "'books' must be an array",
        ),
    ],
)
def test_parse_snapshot_rejects_malformed_envelopes(raw: object, message: str) -> None:
    with pytest.raises(InvalidSnapshotError, match=message):
        parse_snapshot(raw)


def test_parse_snapshot_rejects_unknown_location_kind() -> None:
    payload = snapshot_payload(locations=[location_entry(1, "Shelf", "Cloud")])

    with pytest.raises(InvalidSnapshotError, match=r"data\.locations\.0\.type"):
        parse_snapshot(payload)


def test_parse_snapshot_rejects_keyed_book_without_title() -> None:
    entry = book_entry("1", "Dune")
    del entry["title"]

    with pytest.raises(InvalidSnapshotError, match=r"data\.books\.0: .*title is required"):
        parse_snapshot(snapshot_payload(books=[entry]))


def test_parse_snapshot_keeps_keyless_book_without_title() -> None:
    entry = book_entry(None, "Zine")
    del entry["title"]

    snapshot = parse_snapshot(snapshot_payload(books=[entry]))

    assert snapshot.data.books[0].key is None
    assert snapshot.data.books[0].title is None


def test_parse_snapshot_json_rejects_invalid_json() -> None:
    with pytest.raises(InvalidSnapshotError, match="not valid JSON"):
        parse_snapshot_json("{not json")


def test_snapshot_payload_round_trips_through_json() -> None:
    payload = snapshot_payload(
        books=[book_entry("1", "Dune")],
        locations=[location_entry(1, "Shelf")],
        ownerships=[ownership_entry("alice", "1", 1)],
    )
    snapshot = parse_snapshot(payload)

    reparsed = parse_snapshot_json(json.dumps(snapshot.to_payload()))

    assert reparsed == snapshot
    assert reparsed.to_payload()["data"] == payload["data"]
