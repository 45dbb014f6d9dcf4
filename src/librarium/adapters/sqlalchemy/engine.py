"""Engine construction for the SQLAlchemy adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine


def create_library_engine(database_uri: str) -> Engine:
    """Create an engine whose transactions support savepoints on every backend."""

    engine = create_engine(database_uri, future=True)
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so pysqlite does not commit on RELEASE.

    Must run before the engine opens its first connection.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection: object, _record: object) -> None:
        dbapi_connection.isolation_level = None  # type: ignore[attr-defined]

    @event.listens_for(engine, "begin")
    def _emit_begin(connection: Connection) -> None:
        connection.exec_driver_sql("BEGIN")
