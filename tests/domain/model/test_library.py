from __future__ import annotations

import pytest

from librarium.domain.model import Book, BookChanges, Location, LocationKind


def test_book_apply_replaces_attributes_and_touches_timestamp() -> None:
    book = Book(isbn="X", title="Old", author="Someone", thumbnail_url="http://old")
    before = book.updated_at

    book.apply(BookChanges(title="New", is_doujin=True))

    assert book.title == "New"
    assert book.author is None
    assert book.thumbnail_url is None
    assert book.is_doujin is True
    assert book.updated_at >= before


def test_location_rejects_blank_names() -> None:
    with pytest.raises(ValueError, match="blank"):
        Location(user_id="alice", name="  ", type=LocationKind.PHYSICAL)


def test_location_coerces_kind_values() -> None:
    location = Location(user_id="alice", name="Kindle", type="Digital")  # type: ignore[arg-type]

    assert location.type is LocationKind.DIGITAL
