"""Database setup for the key-value store.

Provides the SQLAlchemy engine factory, session factory and declarative
base. There is no module-level engine: every ``KVStore`` builds its own from
an explicit URL, so tests can open isolated stores side by side.

The store is an on-disk SQLite file, ``<data_dir>/store.db`` by default,
or any URL given through ``RADARHUB_DB_URL``.
"""
from __future__ import annotations

import os
from urllib.parse import urlparse

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


def sqlite_url_for_dir(directory: str, filename: str = "store.db") -> str:
    return f"sqlite:///{os.path.join(os.path.abspath(directory), filename)}"


def _ensure_sqlite_dir(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme == "sqlite" and parsed.path and parsed.path != "/:memory:":
        # parsed.path is an absolute path for sqlite URLs with 3+ slashes
        _dir = os.path.dirname(parsed.path)
        if _dir:
            os.makedirs(_dir, exist_ok=True)


def _set_sqlite_pragmas(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    try:
        # WAL lets readers run alongside the single writer; FULL sync makes a
        # committed put durable once it returns.
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=FULL")
    finally:
        cursor.close()


def make_engine(url: str) -> Engine:
    """Create an engine for a SQLite ``url``, creating its directory if needed."""
    _ensure_sqlite_dir(url)
    engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create the store table if missing (idempotent)."""
    from radarhub_core import models  # noqa: F401  (registers tables on Base)

    Base.metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "make_engine",
    "make_session_factory",
    "init_db",
    "sqlite_url_for_dir",
]
