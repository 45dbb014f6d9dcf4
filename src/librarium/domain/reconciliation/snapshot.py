"""Snapshot documents exchanged by export and import.

``parse_snapshot`` is pure validation: it checks the envelope (version, export
timestamp, data section) and the shape of each entry, then hands back the document
as typed models without any further normalization.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from librarium.domain.errors import InvalidSnapshotError
from librarium.domain.model import BookChanges, LocationKind

from .keys import book_key, location_key

log = logging.getLogger(__name__)

SUPPORTED_SNAPSHOT_VERSION: Final[str] = "1.0"
SNAPSHOT_SECTIONS: Final[tuple[str, ...]] = ("books", "locations", "ownerships")


class SnapshotBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SnapshotBook(SnapshotBaseModel):
    isbn: str | None = None
    title: str | None = None
    author: str | None = None
    thumbnail_url: str | None = None
    is_doujin: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode="after")
    def require_title_when_keyed(self) -> SnapshotBook:
        if self.isbn and self.title is None:
            raise ValueError("title is required for books with an ISBN")
        return self

    @property
    def key(self) -> str | None:
        """ISBN or token; ``None`` when the entry cannot be matched."""
        if not self.isbn:
            return None
        return book_key(self.isbn)

    def changes(self) -> BookChanges:
        if self.title is None:
            raise ValueError(f"Book {self.isbn!r} has no title")
        return BookChanges(
            title=self.title,
            author=self.author or None,
            thumbnail_url=self.thumbnail_url or None,
            is_doujin=self.is_doujin,
        )


class SnapshotLocation(SnapshotBaseModel):
    id: int
    name: str
    type: LocationKind
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def key(self) -> str:
        return location_key(self.name, self.type)


class SnapshotOwnership(SnapshotBaseModel):
    user_id: str
    isbn: str
    location_id: int
    created_at: str | None = None


class SnapshotData(SnapshotBaseModel):
    books: list[SnapshotBook] = Field(default_factory=list)
    locations: list[SnapshotLocation] = Field(default_factory=list)
    ownerships: list[SnapshotOwnership] = Field(default_factory=list)


class Snapshot(SnapshotBaseModel):
    version: str
    exported_at: str
    data: SnapshotData

    def to_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json")


def parse_snapshot(raw: object) -> Snapshot:
    """Validate an externally supplied document and return it as a ``Snapshot``."""

    if not isinstance(raw, Mapping):
        raise InvalidSnapshotError("Import document must be a JSON object")

    version = raw.get("version")
    if not isinstance(version, str) or not version:
        raise InvalidSnapshotError("Snapshot version is missing")
    if version != SUPPORTED_SNAPSHOT_VERSION:
        raise InvalidSnapshotError(
            f"Unsupported snapshot version: {version}. "
            f"Supported version: {SUPPORTED_SNAPSHOT_VERSION}"
        )

    exported_at = raw.get("exported_at")
    if not isinstance(exported_at, str) or not exported_at:
        raise InvalidSnapshotError("Snapshot export timestamp is missing")

    data = raw.get("data")
    if not isinstance(data, Mapping):
        raise InvalidSnapshotError("Snapshot data section is missing or not an object")

    for section in SNAPSHOT_SECTIONS:
        if section in data and not isinstance(data[section], list):
            raise InvalidSnapshotError(f"Snapshot section '{section}' must be an array")

    try:
        snapshot = Snapshot.model_validate(dict(raw))
    except ValidationError as exc:
        raise InvalidSnapshotError(_describe_validation_error(exc)) from exc

    log.debug(
        "Parsed snapshot exported at %s: books=%s, locations=%s, ownerships=%s",
        snapshot.exported_at,
        len(snapshot.data.books),
        len(snapshot.data.locations),
        len(snapshot.data.ownerships),
    )
    return snapshot


def parse_snapshot_json(text: str | bytes) -> Snapshot:
    """Decode JSON text and validate it with ``parse_snapshot``."""

    try:
        raw: object = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidSnapshotError(f"Import document is not valid JSON: {exc.msg}") from exc
    return parse_snapshot(raw)


def _describe_validation_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Snapshot entries are malformed"
    first = errors[0]
    location = ".".join(str(part) for part in first["loc"])
    suffix = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
    return f"Invalid snapshot entry at {location}: {first['msg']}{suffix}"
