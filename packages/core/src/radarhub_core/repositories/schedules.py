"""Station operating schedules under ``schedule:<station_id>:<id>``.

Listing one station's schedules is a prefix scan on
``schedule:<station_id>:``; the trailing colon keeps station 1 from
matching station 10.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional

from radarhub_core.errors import NotFound
from radarhub_core.models import Schedule
from radarhub_core.repositories.base import Clock, Repository
from radarhub_core.store import KVStore
from radarhub_core.timewindow import any_window_contains, current_hhmm

SCHEDULE_PREFIX = "schedule:"


def schedule_key(station_id: int, schedule_id: int) -> str:
    return f"{SCHEDULE_PREFIX}{station_id}:{schedule_id}"


def station_schedule_prefix(station_id: int) -> str:
    return f"{SCHEDULE_PREFIX}{station_id}:"


class ScheduleRepository(Repository[Schedule]):
    record_type = Schedule
    entity = "schedule"
    prefix = SCHEDULE_PREFIX
    updatable = frozenset({"start_hhmm", "end_hhmm", "commander", "crew", "phone"})

    def __init__(self, store: KVStore, clock: Optional[Clock] = None, tz_offset_hours: int = 7):
        super().__init__(store, clock)
        self.tz_offset_hours = tz_offset_hours

    def _put(self, sc: Schedule) -> None:
        self.store.put(schedule_key(sc.station_id, sc.id), sc.to_json())

    def create(self, sc: Schedule) -> Schedule:
        sc = self._build(sc.model_dump())
        sc.id = self.sequence.next_id()
        self._stamp_new(sc)
        self._put(sc)
        self.log.info("schedule.create ok id=%s station=%s window=%s-%s",
                      sc.id, sc.station_id, sc.start_hhmm, sc.end_hhmm)
        return sc

    def get(self, station_id: int, schedule_id: int) -> Schedule:
        return self._load(schedule_key(station_id, schedule_id), station_id=station_id, id=schedule_id)

    def update(self, sc: Schedule) -> Schedule:
        existing = self.get(sc.station_id, sc.id)
        sc = self._build(sc.model_dump())
        sc.created_at = existing.created_at
        sc.updated_at = self.clock()
        self._put(sc)
        return sc

    def update_partial(self, station_id: int, schedule_id: int, fields: Mapping[str, Any]) -> Schedule:
        updated = self._merge(self.get(station_id, schedule_id), fields)
        self._put(updated)
        self.log.info("schedule.update ok id=%s station=%s fields=%s", schedule_id, station_id, sorted(fields))
        return updated

    def delete(self, station_id: int, schedule_id: int) -> None:
        key = schedule_key(station_id, schedule_id)
        if not self.store.exists(key):
            self.log.warning("schedule.delete not_found id=%s station=%s", schedule_id, station_id)
            raise NotFound("schedule not found", station_id=station_id, id=schedule_id)
        self.store.delete(key)
        self.log.info("schedule.delete ok id=%s station=%s", schedule_id, station_id)

    def delete_by_station(self, station_id: int) -> int:
        """Drop every schedule of a station; returns how many were removed."""
        keys = [k for k, _ in self.store.iterate_prefix(station_schedule_prefix(station_id))]
        with self.store.batch() as b:
            for k in keys:
                b.delete(k)
        return len(keys)

    def list_by_station(self, station_id: int) -> List[Schedule]:
        return self._scan(station_schedule_prefix(station_id))

    def list(self) -> List[Schedule]:
        return self._scan()

    def is_station_active_now(self, station_id: int, now: Optional[datetime] = None) -> bool:
        """True when the operating clock falls in any of the station's windows."""
        hhmm = current_hhmm(self.tz_offset_hours, now)
        windows = [(sc.start_hhmm, sc.end_hhmm) for sc in self.list_by_station(station_id)]
        return any_window_contains(windows, hhmm)


__all__ = ["ScheduleRepository", "schedule_key", "station_schedule_prefix"]
