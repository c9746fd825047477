"""SQLite engine and session setup for the data store."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from feedesk.data_store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

MEMORY = ":memory:"


def make_engine(db_path: str) -> Engine:
    """Build an engine for a file path or ``":memory:"``.

    Connections are shared across threads; sync API routes run in a pool.
    """
    if db_path == MEMORY:
        # A single connection, otherwise each thread would get its own empty DB
        engine = create_engine(
            "sqlite://",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: object, _record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        if db_path != MEMORY:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class Database:
    """Owns the engine and hands out sessions."""

    def __init__(self, db_path: str = "feedesk.db") -> None:
        self.db_path = db_path
        self.in_memory = db_path == MEMORY
        self.engine = make_engine(db_path)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def table_names(self) -> list[str]:
        return inspect(self.engine).get_table_names()

    def get_session(self) -> Session:
        return self._sessions()

    def close(self) -> None:
        self.engine.dispose()
