"""Radar stations under ``station:<id>``.

The stored ``status`` is whatever was last written explicitly. Whether a
station is staffed right now comes from its schedules: use
``list_with_status`` / ``get_with_status``, which always recompute it.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from radarhub_core.errors import Conflict, ValidationFailure
from radarhub_core.models import STATUS_ACTIVE, STATUS_INACTIVE, Station
from radarhub_core.repositories.base import Clock, Repository
from radarhub_core.repositories.schedules import ScheduleRepository
from radarhub_core.store import KVStore

STATION_PREFIX = "station:"


def station_key(station_id: int) -> str:
    return f"{STATION_PREFIX}{station_id}"


class StationRepository(Repository[Station]):
    record_type = Station
    entity = "station"
    prefix = STATION_PREFIX
    updatable = frozenset({"name", "latitude", "longitude", "elevation", "distance_to_coast", "status", "note"})

    def __init__(self, store: KVStore, schedules: ScheduleRepository, clock: Optional[Clock] = None):
        super().__init__(store, clock)
        self.schedules = schedules

    def _put(self, station: Station) -> None:
        self.store.put(station_key(station.id), station.to_json())

    def create(self, station: Station) -> Station:
        """Store a new station; ``id == 0`` means allocate one."""
        self._require(station.name, "name")
        if station.id < 0:
            raise ValidationFailure("station id must be positive", field="id")
        if station.id == 0:
            station.id = self.sequence.next_id()
            while self.store.exists(station_key(station.id)):
                station.id = self.sequence.next_id()
            self.log.info("station.create assigned id=%s", station.id)
        elif self.store.exists(station_key(station.id)):
            self.log.warning("station.create conflict id=%s", station.id)
            raise Conflict("station with this ID already exists", id=station.id)
        else:
            self.sequence.observe(station.id)
        self._stamp_new(station)
        self._put(station)
        self.log.info("station.create ok id=%s name=%s", station.id, station.name)
        return station

    def get(self, station_id: int) -> Station:
        return self._load(station_key(station_id), id=station_id)

    def list(self) -> List[Station]:
        return self._all(self._scan())

    def update(self, station: Station) -> Station:
        existing = self.get(station.id)
        station.created_at = existing.created_at
        station.updated_at = self.clock()
        self._put(station)
        return station

    def update_partial(self, station_id: int, fields: Mapping[str, Any]) -> Station:
        if "name" in fields:
            self._require(fields["name"], "name")
        updated = self._merge(self.get(station_id), fields)
        self._put(updated)
        self.log.info("station.update ok id=%s fields=%s", station_id, sorted(fields))
        return updated

    def update_note(self, station_id: int, note: str) -> Station:
        return self.update_partial(station_id, {"note": note})

    def delete(self, station_id: int) -> None:
        self.get(station_id)
        self.store.delete(station_key(station_id))
        self.log.info("station.delete ok id=%s", station_id)

    def _with_status(self, station: Station, now: Optional[datetime]) -> Station:
        active = self.schedules.is_station_active_now(station.id, now)
        return station.model_copy(update={"status": STATUS_ACTIVE if active else STATUS_INACTIVE})

    def get_with_status(self, station_id: int, now: Optional[datetime] = None) -> Station:
        return self._with_status(self.get(station_id), now)

    def list_with_status(self, now: Optional[datetime] = None) -> List[Station]:
        return [self._with_status(st, now) for st in self.list()]


__all__ = ["StationRepository", "station_key"]
