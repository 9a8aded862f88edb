"""
Local SQLAlchemy-backed store for cached layouts.

One store is created per database and handed to every component that needs
it. Writers are serialized; readers use their own sessions and only ever see
committed state.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from logging_setup import get_logger
from models import Base


CommitListener = Callable[[], None]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _engine_options(database_url: str) -> dict:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # One shared connection, otherwise each thread would get its own empty database
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


class Store:
    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self.engine: Engine = create_engine(database_url, **_engine_options(database_url))
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        self._write_lock = threading.Lock()
        self._listeners: list[CommitListener] = []
        self._listeners_lock = threading.Lock()

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def read_session(self) -> Iterator[Session]:
        """Session for queries. It is closed without committing; loaded objects stay usable."""
        s = self.SessionLocal()
        try:
            yield s
        finally:
            s.close()

    @contextmanager
    def write_session(self) -> Iterator[Session]:
        """Serialized write scope: commit on success, roll back on any error.

        Commit listeners run after the commit, outside the write lock.
        """
        with self._write_lock:
            s = self.SessionLocal()
            try:
                yield s
                s.commit()
            except Exception:
                s.rollback()
                raise
            finally:
                s.close()
        self._notify_commit()

    # ------------------------------------------------------------------ #
    # Commit listeners
    # ------------------------------------------------------------------ #
    def add_commit_listener(self, listener: CommitListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_commit_listener(self, listener: CommitListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify_commit(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                get_logger().exception("Commit listener %r failed", listener)
