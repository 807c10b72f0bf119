"""Vessels with MMSI and name indexes.

Keys:

* ``vessel:<id>``: the record
* ``vessel_mmsi:<mmsi>``: JSON id of the vessel holding that MMSI
* ``vessel_name:<lowercased name>``: JSON id of a vessel with that name

The record and its index entries are written in one batch. Index entries
are only removed while they still point at the vessel being changed, so two
vessels sharing a name do not erase each other's entry; the name index
keeps one id per name, the last one written. Entries whose record is gone
(left by data written without batches) are dropped when a read meets them.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from radarhub_core.errors import Conflict, NotFound, StorageFailure
from radarhub_core.models import Vessel
from radarhub_core.repositories.base import Repository
from radarhub_core.store import WriteBatch, decode_json

VESSEL_PREFIX = "vessel:"
MMSI_PREFIX = "vessel_mmsi:"
NAME_PREFIX = "vessel_name:"


def vessel_key(vessel_id: int) -> str:
    return f"{VESSEL_PREFIX}{vessel_id}"


def mmsi_key(mmsi: str) -> str:
    return f"{MMSI_PREFIX}{mmsi}"


def name_key(name: str) -> str:
    return f"{NAME_PREFIX}{name.lower()}"


class VesselRepository(Repository[Vessel]):
    record_type = Vessel
    entity = "vessel"
    prefix = VESSEL_PREFIX
    updatable = frozenset({"name", "mmsi", "kind", "size", "weight", "vessel_class",
                           "specs", "max_speed", "description"})

    def _index_target(self, key: str) -> Optional[int]:
        """Vessel id an index entry points at; ``None`` for a missing or bad entry.

        Read errors from the store propagate.
        """
        try:
            raw = self.store.get(key)
        except NotFound:
            return None
        return self._parse_index(raw, key)

    def _parse_index(self, raw: bytes, key: str) -> Optional[int]:
        try:
            value = decode_json(raw, key)
        except StorageFailure:
            self.log.warning("vessel.index unreadable key=%s", key)
            return None
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    def _mmsi_owner(self, mmsi: str) -> Optional[int]:
        """Id of the live vessel holding ``mmsi``; a dangling entry is removed."""
        key = mmsi_key(mmsi)
        vessel_id = self._index_target(key)
        if vessel_id is None:
            return None
        if not self.store.exists(vessel_key(vessel_id)):
            self.log.warning("vessel.index dangling key=%s id=%s", key, vessel_id)
            self.store.delete(key)
            return None
        return vessel_id

    def _drop_if_points_at(self, b: WriteBatch, key: str, vessel_id: int) -> None:
        if self._index_target(key) == vessel_id:
            b.delete(key)

    def _validate(self, vessel: Vessel) -> None:
        self._require(vessel.name, "name")
        self._require(vessel.mmsi, "mmsi")

    def exists_by_mmsi(self, mmsi: str) -> bool:
        return self._mmsi_owner(mmsi) is not None

    def create(self, vessel: Vessel) -> Vessel:
        self._validate(vessel)
        # check-then-write: concurrent creates with one MMSI can both pass
        if self.exists_by_mmsi(vessel.mmsi):
            self.log.warning("vessel.create conflict mmsi=%s", vessel.mmsi)
            raise Conflict("vessel with this MMSI already exists", mmsi=vessel.mmsi)
        vessel.id = self.sequence.next_id()
        self._stamp_new(vessel)
        with self.store.batch() as b:
            b.put(vessel_key(vessel.id), vessel.to_json())
            b.put_json(mmsi_key(vessel.mmsi), vessel.id)
            b.put_json(name_key(vessel.name), vessel.id)
        self.log.info("vessel.create ok id=%s mmsi=%s name=%s", vessel.id, vessel.mmsi, vessel.name)
        return vessel

    def get(self, vessel_id: int) -> Vessel:
        return self._load(vessel_key(vessel_id), id=vessel_id)

    def get_by_mmsi(self, mmsi: str) -> Vessel:
        vessel_id = self._index_target(mmsi_key(mmsi))
        if vessel_id is None:
            raise NotFound("vessel not found", mmsi=mmsi)
        try:
            return self.get(vessel_id)
        except NotFound:
            self.log.warning("vessel.index dangling key=%s id=%s", mmsi_key(mmsi), vessel_id)
            self.store.delete(mmsi_key(mmsi))
            raise NotFound("vessel not found", mmsi=mmsi) from None

    def search_by_name(self, name: str) -> List[Vessel]:
        """Vessels whose lowercased name contains ``name`` (case-insensitive)."""
        needle = name.lower()
        out: List[Vessel] = []
        for key, raw in self.store.iterate_prefix(NAME_PREFIX):
            if needle not in key[len(NAME_PREFIX):]:
                continue
            vessel_id = self._parse_index(raw, key)
            if vessel_id is None:
                self.log.warning("vessel.search skip key=%s", key)
                continue
            try:
                record = self.store.get(vessel_key(vessel_id))
            except NotFound:
                self.log.warning("vessel.index dangling key=%s id=%s", key, vessel_id)
                self.store.delete(key)
                continue
            try:
                out.append(self.record_type.from_json(record))
            except ValidationError:
                self.log.warning("vessel.search skip unreadable id=%s", vessel_id)
        return out

    def list(self) -> List[Vessel]:
        return self._all(self._scan())

    def _store_update(self, existing: Vessel, vessel: Vessel) -> Vessel:
        self._validate(vessel)
        mmsi_changed = existing.mmsi != vessel.mmsi
        if mmsi_changed and self._mmsi_owner(vessel.mmsi) not in (None, vessel.id):
            self.log.warning("vessel.update conflict id=%s mmsi=%s", vessel.id, vessel.mmsi)
            raise Conflict("vessel with this MMSI already exists", mmsi=vessel.mmsi)
        vessel.created_at = existing.created_at
        vessel.updated_at = self.clock()
        with self.store.batch() as b:
            if mmsi_changed:
                self._drop_if_points_at(b, mmsi_key(existing.mmsi), existing.id)
                b.put_json(mmsi_key(vessel.mmsi), vessel.id)
            if existing.name.lower() != vessel.name.lower():
                self._drop_if_points_at(b, name_key(existing.name), existing.id)
                b.put_json(name_key(vessel.name), vessel.id)
            b.put(vessel_key(vessel.id), vessel.to_json())
        self.log.info("vessel.update ok id=%s mmsi=%s name=%s", vessel.id, vessel.mmsi, vessel.name)
        return vessel

    def update(self, vessel: Vessel) -> Vessel:
        return self._store_update(self.get(vessel.id), vessel)

    def update_partial(self, vessel_id: int, fields: Mapping[str, Any]) -> Vessel:
        existing = self.get(vessel_id)
        return self._store_update(existing, self._merge(existing, fields))

    def delete(self, vessel_id: int) -> None:
        vessel = self.get(vessel_id)
        with self.store.batch() as b:
            b.delete(vessel_key(vessel_id))
            self._drop_if_points_at(b, mmsi_key(vessel.mmsi), vessel_id)
            self._drop_if_points_at(b, name_key(vessel.name), vessel_id)
        self.log.info("vessel.delete ok id=%s mmsi=%s", vessel_id, vessel.mmsi)


__all__ = ["VesselRepository", "vessel_key", "mmsi_key", "name_key"]
