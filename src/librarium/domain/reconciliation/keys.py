"""Natural-key identities shared by diff detection, selections and the merge.

Identities are plain ``:``-joined strings so that they stay compatible with the
``entity_id`` values carried in exported diffs and caller selections. Parsing
splits from the right: location kinds, ISBN/UUID tokens and integer ids never
contain the delimiter, while location names and owner ids may.
"""

from __future__ import annotations

from typing import Final

from librarium.domain.model import LocationKind

KEY_DELIMITER: Final[str] = ":"


def book_key(isbn: str) -> str:
    return isbn


def location_key(name: str, kind: LocationKind | str) -> str:
    return f"{name}{KEY_DELIMITER}{LocationKind(kind).value}"


def parse_location_key(key: str) -> tuple[str, LocationKind]:
    name, sep, kind = key.rpartition(KEY_DELIMITER)
    if not sep:
        raise ValueError(f"Not a location key: {key!r}")
    try:
        return name, LocationKind(kind)
    except ValueError as exc:
        raise ValueError(f"Unknown location kind in key: {key!r}") from exc


def ownership_key(user_id: str, isbn: str, location_id: int) -> str:
    return KEY_DELIMITER.join((user_id, isbn, str(location_id)))


def parse_ownership_key(key: str) -> tuple[str, str, int]:
    parts = key.rsplit(KEY_DELIMITER, 2)
    if len(parts) != 3:  # noqa: PLR2004
        raise ValueError(f"Not an ownership key: {key!r}")
    user_id, isbn, raw_location_id = parts
    try:
        location_id = int(raw_location_id)
    except ValueError as exc:
        raise ValueError(f"Invalid location id in ownership key: {key!r}") from exc
    return user_id, isbn, location_id
