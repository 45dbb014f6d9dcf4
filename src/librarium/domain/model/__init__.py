"""Public domain model surface."""

from __future__ import annotations

from librarium.domain.model.enums import LocationKind
from librarium.domain.model.library import (
    Book,
    BookChanges,
    Location,
    Ownership,
    utcnow,
)

__all__ = [
    "Book",
    "BookChanges",
    "Location",
    "LocationKind",
    "Ownership",
    "utcnow",
]
