"""HQ-to-station commands under ``command:<id>``.

Acknowledgement is one-way: ``acknowledged_at`` goes from null to a
timestamp once and is never cleared or overwritten.
"""
from __future__ import annotations

from typing import List, Optional

from radarhub_core.errors import Conflict
from radarhub_core.models import Command
from radarhub_core.repositories.base import Repository

COMMAND_PREFIX = "command:"


def command_key(command_id: int) -> str:
    return f"{COMMAND_PREFIX}{command_id}"


class CommandRepository(Repository[Command]):
    record_type = Command
    entity = "command"
    prefix = COMMAND_PREFIX

    def _put(self, cmd: Command) -> None:
        self.store.put(command_key(cmd.id), cmd.to_json())

    def create(self, cmd: Command) -> Command:
        self._require(cmd.content, "content")
        cmd.id = self.sequence.next_id()
        cmd.created_at = self.clock()
        cmd.sent_at = cmd.created_at
        cmd.acknowledged_at = None
        self._put(cmd)
        self.log.info("command.create ok id=%s to_station=%s from_user=%s", cmd.id, cmd.to_station_id, cmd.from_user_id)
        return cmd

    def get(self, command_id: int) -> Command:
        return self._load(command_key(command_id), id=command_id)

    def list(self) -> List[Command]:
        return self._all(self._scan())

    def list_by_station(self, station_id: int) -> List[Command]:
        return [c for c in self.list() if c.to_station_id == station_id]

    def list_unacknowledged(self, station_id: int) -> List[Command]:
        return [c for c in self.list_by_station(station_id) if c.acknowledged_at is None]

    def acknowledge(self, command_id: int, ts: Optional[int] = None) -> Command:
        cmd = self.get(command_id)
        if cmd.acknowledged_at is not None:
            self.log.warning("command.ack conflict id=%s acknowledged_at=%s", command_id, cmd.acknowledged_at)
            raise Conflict("command already acknowledged", id=command_id)
        cmd.acknowledged_at = self.clock() if ts is None else ts
        self._put(cmd)
        self.log.info("command.ack ok id=%s at=%s", command_id, cmd.acknowledged_at)
        return cmd

    def delete(self, command_id: int) -> None:
        self.get(command_id)
        self.store.delete(command_key(command_id))
        self.log.info("command.delete ok id=%s", command_id)


__all__ = ["CommandRepository", "command_key"]
