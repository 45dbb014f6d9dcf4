"""SQLAlchemy adapter package for Librarium."""

from __future__ import annotations

from .mappings import (
    book_table,
    create_all_tables,
    location_table,
    mapper_registry,
    ownership_table,
    start_mappers,
)
from .repositories import (
    SqlAlchemyBookRepository,
    SqlAlchemyLocationRepository,
    SqlAlchemyOwnershipRepository,
)

__all__ = [
    "SqlAlchemyBookRepository",
    "SqlAlchemyLocationRepository",
    "SqlAlchemyOwnershipRepository",
    "book_table",
    "create_all_tables",
    "location_table",
    "mapper_registry",
    "ownership_table",
    "start_mappers",
]
