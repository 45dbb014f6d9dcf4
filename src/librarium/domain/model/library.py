"""Library entities: books, the locations holding them, and ownerships.

Books are shared master data keyed by ISBN (or an opaque token for works that
have none). Locations belong to exactly one owner. An ownership ties an owner, a
book and one of the owner's locations together; an owner "has" a book as long as at
least one ownership references it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from librarium.domain.model.enums import LocationKind


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False, kw_only=True)
class Book:
    isbn: str
    title: str
    author: str | None = None
    thumbnail_url: str | None = None
    is_doujin: bool = False

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def apply(self, changes: BookChanges) -> None:
        self.title = changes.title
        self.author = changes.author
        self.thumbnail_url = changes.thumbnail_url
        self.is_doujin = changes.is_doujin
        self.updated_at = utcnow()


@dataclass(frozen=True, slots=True, kw_only=True)
class BookChanges:
    """Full replacement of a book's mutable attributes."""

    title: str
    author: str | None = None
    thumbnail_url: str | None = None
    is_doujin: bool = False


@dataclass(eq=False, kw_only=True)
class Location:
    user_id: str
    name: str
    type: LocationKind
    id: int | None = None  # assigned by the store

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Location name must not be blank")
        self.type = LocationKind(self.type)


@dataclass(eq=False, kw_only=True)
class Ownership:
    user_id: str
    isbn: str
    location_id: int
    id: int | None = None  # assigned by the store

    created_at: datetime = field(default_factory=utcnow)
