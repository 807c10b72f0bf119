"""Ordered key-value store over a single SQLite table.

Values are opaque bytes under byte-string keys; iteration is in ascending
byte order, so composite keys such as ``schedule:<station>:<id>`` group by
their leading component. The store adds no lock of its own: SQLite
serialises writers and WAL lets readers overlap them.

Usage::

    store = KVStore.open("./data/leveldb")
    store.put_json("station:1", {"id": 1, "name": "A"})
    store.get_json("station:1")
    for key, raw in store.iterate_prefix("station:"):
        ...
    with store.batch() as b:
        b.put_json("vessel:1", {...})
        b.put_json("vessel_mmsi:574000001", 1)
"""
from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Tuple, Union

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from radarhub_core.db import init_db, make_engine, make_session_factory, sqlite_url_for_dir
from radarhub_core.errors import NotFound, StorageFailure
from radarhub_core.models import KVEntry

logger = logging.getLogger("radarhub_core.store")

Key = Union[str, bytes]


def _key_bytes(key: Key) -> bytes:
    return key.encode("utf-8") if isinstance(key, str) else bytes(key)


def prefix_upper_bound(prefix: bytes) -> Optional[bytes]:
    """Smallest key greater than every key starting with ``prefix``.

    ``None`` when no such bound exists (empty prefix or all 0xff bytes).
    """
    stripped = prefix.rstrip(b"\xff")
    if not stripped:
        return None
    return stripped[:-1] + bytes([stripped[-1] + 1])


def encode_json(value: Any) -> bytes:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise StorageFailure("json encode failed") from exc


def decode_json(raw: bytes, key: Key = "") -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise StorageFailure("json decode failed", key=key) from exc


def _upsert(db: Session, key: bytes, value: bytes) -> None:
    stmt = sqlite_insert(KVEntry).values(key=key, value=value)
    db.execute(stmt.on_conflict_do_update(index_elements=[KVEntry.key], set_={"value": stmt.excluded.value}))


def _remove(db: Session, key: bytes) -> None:
    db.execute(delete(KVEntry).where(KVEntry.key == key))


class WriteBatch:
    """Puts and deletes applied together in one transaction."""

    def __init__(self) -> None:
        self._ops: List[Tuple[bytes, Optional[bytes]]] = []

    def put(self, key: Key, value: bytes) -> None:
        self._ops.append((_key_bytes(key), bytes(value)))

    def put_json(self, key: Key, value: Any) -> None:
        self.put(key, encode_json(value))

    def delete(self, key: Key) -> None:
        self._ops.append((_key_bytes(key), None))

    def __len__(self) -> int:
        return len(self._ops)

    def apply(self, db: Session) -> None:
        for key, value in self._ops:
            if value is None:
                _remove(db, key)
            else:
                _upsert(db, key, value)


class KVStore:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._session = make_session_factory(engine)
        init_db(engine)

    @property
    def location(self) -> str:
        """Identity of the underlying database, shared by every handle on it."""
        database = self.engine.url.database
        if not database or database == ":memory:":
            return f"memory:{id(self)}"
        return os.path.abspath(database)

    @classmethod
    def open(cls, directory: str) -> "KVStore":
        """Open (or create) the store under ``directory``."""
        return cls.open_url(sqlite_url_for_dir(directory))

    @classmethod
    def open_url(cls, url: str) -> "KVStore":
        try:
            store = cls(make_engine(url))
        except SQLAlchemyError as exc:
            raise StorageFailure("store open failed", url=url) from exc
        logger.info("store.open url=%s", url)
        return store

    def close(self) -> None:
        self.engine.dispose()
        logger.info("store.close")

    def __enter__(self) -> "KVStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @contextmanager
    def _tx(self) -> Iterator[Session]:
        db = self._session()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageFailure("store write failed") from exc
        except BaseException:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def _read(self) -> Iterator[Session]:
        db = self._session()
        try:
            yield db
        except SQLAlchemyError as exc:
            raise StorageFailure("store read failed") from exc
        finally:
            db.close()

    def put(self, key: Key, value: bytes) -> None:
        with self._tx() as db:
            _upsert(db, _key_bytes(key), bytes(value))

    def get(self, key: Key) -> bytes:
        """Value stored at ``key``; raises ``NotFound`` when absent."""
        with self._read() as db:
            entry = db.get(KVEntry, _key_bytes(key))
            if entry is None:
                raise NotFound("key not found", key=key)
            return bytes(entry.value)

    def delete(self, key: Key) -> None:
        with self._tx() as db:
            _remove(db, _key_bytes(key))

    def exists(self, key: Key) -> bool:
        with self._read() as db:
            return db.execute(
                select(KVEntry.key).where(KVEntry.key == _key_bytes(key))
            ).first() is not None

    def iterate_prefix(self, prefix: Key) -> Iterator[Tuple[str, bytes]]:
        """Yield ``(key, value)`` for every key starting with ``prefix``.

        Keys come back in ascending byte order; keys that are not valid UTF-8
        are skipped. Rows are read up front, so callers may write to the store
        while iterating.
        """
        low = _key_bytes(prefix)
        high = prefix_upper_bound(low)
        stmt = select(KVEntry.key, KVEntry.value).where(KVEntry.key >= low)
        if high is not None:
            stmt = stmt.where(KVEntry.key < high)
        stmt = stmt.order_by(KVEntry.key)
        with self._read() as db:
            rows = db.execute(stmt).all()
        logger.debug("store.scan prefix=%s count=%d", prefix, len(rows))
        for key, value in rows:
            try:
                text = bytes(key).decode("utf-8")
            except UnicodeDecodeError:
                logger.warning("store.scan skip undecodable key=%r", bytes(key))
                continue
            yield text, bytes(value)

    def put_json(self, key: Key, value: Any) -> None:
        self.put(key, encode_json(value))

    def get_json(self, key: Key) -> Any:
        return decode_json(self.get(key), key)

    @contextmanager
    def batch(self) -> Iterator[WriteBatch]:
        """Collect writes and commit them atomically on exit.

        Nothing is written if the block raises.
        """
        wb = WriteBatch()
        yield wb
        if not len(wb):
            return
        with self._tx() as db:
            wb.apply(db)


__all__ = ["KVStore", "WriteBatch", "prefix_upper_bound", "encode_json", "decode_json"]
