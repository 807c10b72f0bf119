"""Per-entity ID sequences kept in ``<name>_counter`` keys.

Every entity type allocates through the same persisted counter. When the
counter key is missing (empty store, or data written before counters
existed) it is seeded from the highest id found under the entity's prefix.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Optional, Tuple

from radarhub_core.errors import NotFound, StorageFailure
from radarhub_core.store import KVStore, decode_json

logger = logging.getLogger("radarhub_core.sequence")

# One lock per (database, counter key) for the whole process, shared by every
# allocator and every store handle opened on the same database.
_COUNTER_LOCKS: Dict[Tuple[str, str], threading.Lock] = {}
_COUNTER_LOCKS_GUARD = threading.Lock()


def counter_lock(store: KVStore, counter_key: str) -> threading.Lock:
    ident = (store.location, counter_key)
    with _COUNTER_LOCKS_GUARD:
        lock = _COUNTER_LOCKS.get(ident)
        if lock is None:
            lock = _COUNTER_LOCKS[ident] = threading.Lock()
        return lock


def _json_id(raw: bytes) -> Optional[int]:
    try:
        value = decode_json(raw)
    except StorageFailure:
        return None
    if isinstance(value, dict):
        value = value.get("id")
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class SequenceAllocator:
    """Monotonic id source for one entity type.

    ``next_id`` runs its read-increment-write under the process-wide lock
    for this counter, so allocators built over the same database never hand
    out the same id. The process is assumed to own the store; nothing guards
    against a second process allocating from the same counter.
    """

    def __init__(self, store: KVStore, name: str, prefix: str,
                 id_of: Callable[[bytes], Optional[int]] = _json_id):
        self.store = store
        self.name = name
        self.prefix = prefix
        self.counter_key = f"{name}_counter"
        self._id_of = id_of
        self._lock = counter_lock(store, self.counter_key)

    def _scan_max(self) -> int:
        last = 0
        for key, raw in self.store.iterate_prefix(self.prefix):
            rid = self._id_of(raw)
            if rid is None:
                logger.warning("sequence.scan skip key=%s", key)
                continue
            last = max(last, rid)
        return last

    def _read(self) -> int:
        try:
            value = self.store.get_json(self.counter_key)
        except NotFound:
            value = self._scan_max()
            logger.info("sequence.seed name=%s last=%d", self.name, value)
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise StorageFailure("counter is not an integer", key=self.counter_key)
        return value

    def current(self) -> int:
        """Last issued id (0 when nothing was issued)."""
        with self._lock:
            return self._read()

    def next_id(self) -> int:
        with self._lock:
            nxt = self._read() + 1
            self.store.put_json(self.counter_key, nxt)
            return nxt

    def observe(self, used_id: int) -> None:
        """Raise the counter to ``used_id`` after a caller-chosen id was stored."""
        with self._lock:
            if used_id > self._read():
                self.store.put_json(self.counter_key, used_id)


__all__ = ["SequenceAllocator"]
