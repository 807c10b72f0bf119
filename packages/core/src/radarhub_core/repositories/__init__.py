"""Entity repositories over a shared ``KVStore`` handle."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from radarhub_core.repositories.base import Clock, Repository, unix_now
from radarhub_core.repositories.commands import CommandRepository
from radarhub_core.repositories.documents import DocumentRepository
from radarhub_core.repositories.roles import RoleRepository
from radarhub_core.repositories.schedules import ScheduleRepository
from radarhub_core.repositories.stations import StationRepository
from radarhub_core.repositories.users import UserRepository
from radarhub_core.repositories.vessels import VesselRepository
from radarhub_core.store import KVStore


@dataclass
class Repositories:
    store: KVStore
    users: UserRepository
    roles: RoleRepository
    stations: StationRepository
    schedules: ScheduleRepository
    commands: CommandRepository
    documents: DocumentRepository
    vessels: VesselRepository

    @classmethod
    def build(cls, store: KVStore, clock: Optional[Clock] = None, tz_offset_hours: int = 7) -> "Repositories":
        schedules = ScheduleRepository(store, clock, tz_offset_hours=tz_offset_hours)
        return cls(
            store=store,
            users=UserRepository(store, clock),
            roles=RoleRepository(store, clock),
            stations=StationRepository(store, schedules, clock),
            schedules=schedules,
            commands=CommandRepository(store, clock),
            documents=DocumentRepository(store, clock),
            vessels=VesselRepository(store, clock),
        )


__all__ = [
    "Repositories",
    "Repository",
    "Clock",
    "unix_now",
    "CommandRepository",
    "DocumentRepository",
    "RoleRepository",
    "ScheduleRepository",
    "StationRepository",
    "UserRepository",
    "VesselRepository",
]
