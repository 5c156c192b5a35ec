"""Database engine, schema and session wiring."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

# Called as ``factory()`` for reads or ``factory(write=True)`` for a unit of work that writes.
SessionFactory = Callable[..., ContextManager[Session]]

WRITER_OPTION = "streakline_writer"


def _install_sqlite_hooks(engine: Engine, pragmas: dict[str, str]) -> None:
    """Apply pragmas per connection and choose the BEGIN flavour per transaction.

    pysqlite's implicit BEGIN is disabled so writer transactions can issue
    ``BEGIN IMMEDIATE`` and take the write lock before their first read; two
    writers never both read a habit and then race to upgrade their lock.
    Readers use a deferred ``BEGIN`` and, under WAL, never wait on a writer.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        for name, value in pragmas.items():
            cursor.execute(f"PRAGMA {name}={value}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection) -> None:  # pragma: no cover - driver hook
        if connection.get_execution_options().get(WRITER_OPTION):
            connection.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            connection.exec_driver_sql("BEGIN")


def create_db_engine(config: BaseConfig) -> Engine:
    """Create SQLModel engine from configuration."""
    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if engine.dialect.name == "sqlite":
        _install_sqlite_hooks(engine, config.SQLITE_PRAGMAS)
    return engine


def init_database(engine: Engine) -> None:
    """Initialize database schema."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine) -> SessionFactory:
    """Create a session factory function.

    ``factory(write=True)`` binds the session to a writer view of the engine;
    on SQLite its transactions open with ``BEGIN IMMEDIATE``.
    """

    writer = engine.execution_options(**{WRITER_OPTION: True})

    def factory(*, write: bool = False) -> ContextManager[Session]:
        return session_scope(writer if write else engine)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple[Engine, SessionFactory]:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by the app factory, the CLI and tests so every entry point gets the
    same engine options. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)
