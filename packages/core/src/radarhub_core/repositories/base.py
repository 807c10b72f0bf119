"""Shared plumbing for the entity repositories."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import ValidationError

from radarhub_core.errors import NotFound, StorageFailure, ValidationFailure
from radarhub_core.models import Record
from radarhub_core.sequence import SequenceAllocator
from radarhub_core.store import KVStore

R = TypeVar("R", bound=Record)

Clock = Callable[[], int]


def unix_now() -> int:
    return int(time.time())


def _validation_failure(exc: ValidationError) -> ValidationFailure:
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ())) or None
    return ValidationFailure(first.get("msg", "invalid record"), field=loc)


class Repository(Generic[R]):
    """One entity type under one key prefix.

    Subclasses set ``record_type``, ``entity`` (also the counter name) and
    ``prefix``, and list the fields a partial update may touch in
    ``updatable``.
    """

    record_type: Type[R]
    entity: str = ""
    prefix: str = ""
    updatable: frozenset = frozenset()

    def __init__(self, store: KVStore, clock: Optional[Clock] = None):
        self.store = store
        self.clock: Clock = clock or unix_now
        self.sequence = SequenceAllocator(store, self.entity, self.prefix)
        self.log = logging.getLogger(f"radarhub_core.repositories.{self.entity}")

    # -- decoding -----------------------------------------------------
    def _decode(self, raw: bytes, key: str) -> R:
        try:
            return self.record_type.from_json(raw)
        except ValidationError as exc:
            raise StorageFailure(f"{self.entity} record unreadable", key=key) from exc

    def _load(self, key: str, **context: Any) -> R:
        try:
            raw = self.store.get(key)
        except NotFound:
            raise NotFound(f"{self.entity} not found", **context) from None
        return self._decode(raw, key)

    def _scan(self, prefix: Optional[str] = None) -> List[R]:
        """Decode every record under ``prefix``, skipping unreadable ones."""
        out: List[R] = []
        for key, raw in self.store.iterate_prefix(prefix or self.prefix):
            try:
                out.append(self.record_type.from_json(raw))
            except ValidationError:
                self.log.warning("%s.list skip key=%s", self.entity, key)
        return out

    # -- building -----------------------------------------------------
    def _build(self, data: Mapping[str, Any]) -> R:
        try:
            return self.record_type.model_validate(dict(data))
        except ValidationError as exc:
            raise _validation_failure(exc) from None

    def _field_name(self, key: str) -> Optional[str]:
        for name, info in self.record_type.model_fields.items():
            if key == name or key == info.alias:
                return name
        return None

    def _normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in fields.items():
            name = self._field_name(key)
            if name is None or name not in self.updatable:
                raise ValidationFailure("field cannot be updated", field=key)
            out[name] = value
        return out

    def _merge(self, record: R, fields: Mapping[str, Any]) -> R:
        """Apply present ``fields`` onto ``record`` and refresh ``updated_at``."""
        data = record.model_dump()
        data.update(self._normalize(fields))
        if "updated_at" in data:
            data["updated_at"] = self.clock()
        return self._build(data)

    @staticmethod
    def _require(value: Any, field: str) -> None:
        if isinstance(value, str):
            value = value.strip()
        if not value:
            raise ValidationFailure(f"{field} is required", field=field)

    def _stamp_new(self, record: R) -> None:
        now = self.clock()
        record.created_at = now
        if "updated_at" in self.record_type.model_fields:
            record.updated_at = now

    def _all(self, records: Iterable[R]) -> List[R]:
        return sorted(records, key=lambda r: r.id)


__all__ = ["Repository", "Clock", "unix_now"]
