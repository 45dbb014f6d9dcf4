"""SQLAlchemy-backed unit of work for library reconciliation.

``startup`` binds the adapter to one engine (migrating it to the latest schema) and
every ``SqlAlchemyLibraryUnitOfWork`` created afterwards opens its own session on
that engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Literal

from sqlalchemy.orm import Session, sessionmaker

from librarium.adapters.sqlalchemy.engine import create_library_engine
from librarium.adapters.sqlalchemy.mappings import start_mappers
from librarium.adapters.sqlalchemy.migrations import upgrade_head
from librarium.adapters.sqlalchemy.repositories import (
    SqlAlchemyBookRepository,
    SqlAlchemyLocationRepository,
    SqlAlchemyOwnershipRepository,
)
from librarium.config import get_database_config
from librarium.domain.ports.unit_of_work import LibraryRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


_session_factory: sessionmaker[Session] | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the adapter to ``engine`` (or one built from the configured URI)."""

    global _session_factory

    if is_started() and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    bound = engine or create_library_engine(database_uri or get_database_config().uri)
    start_mappers()
    upgrade_head(engine=bound)
    _session_factory = sessionmaker(bind=bound, expire_on_commit=False)


def is_started() -> bool:
    return _session_factory is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it (primarily for tests)."""

    global _session_factory

    if _session_factory is not None:
        bind = _session_factory.kw.get("bind")
        if bind is not None:
            bind.dispose()
    _session_factory = None


def _require_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call librarium.adapters.sqlalchemy."
            "unit_of_work.startup() before requesting a unit of work."
        )
    return _session_factory


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """One session per ``with`` block, exposing a repository collection."""

    def __init__(self) -> None:
        self.session_factory = _require_session_factory()
        self._session: Session | None = None
        self._repositories: TRepositories | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = self._build_repositories(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        if exc_type is not None:
            session.rollback()
        session.close()
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def repositories(self) -> TRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories


class SqlAlchemyLibraryUnitOfWork(BaseSqlAlchemyUnitOfWork[LibraryRepositories]):
    """Unit of work managing SQLAlchemy sessions for books, locations and ownerships."""

    def _build_repositories(self, session: Session) -> LibraryRepositories:
        return LibraryRepositories(
            books=SqlAlchemyBookRepository(session),
            locations=SqlAlchemyLocationRepository(session),
            ownerships=SqlAlchemyOwnershipRepository(session),
        )


if TYPE_CHECKING:
    from librarium.domain.ports.unit_of_work import LibraryUnitOfWork

    _uow_check: LibraryUnitOfWork = SqlAlchemyLibraryUnitOfWork()
