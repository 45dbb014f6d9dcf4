"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class LocationKind(StrEnum):
    """Where a location keeps its books."""

    PHYSICAL = "Physical"
    DIGITAL = "Digital"
