"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    BookRepository,
    LocationRepository,
    OwnershipRepository,
    Repository,
)
from .unit_of_work import (
    LibraryRepositories,
    LibraryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "BookRepository",
    "LibraryRepositories",
    "LibraryUnitOfWork",
    "LocationRepository",
    "OwnershipRepository",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
