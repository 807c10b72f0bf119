"""Role rows under ``role:<id>``."""
from __future__ import annotations

from typing import Any, List, Mapping

from radarhub_core.models import Role, RoleName
from radarhub_core.repositories.base import Repository

ROLE_PREFIX = "role:"

DEFAULT_DESCRIPTIONS = {
    RoleName.ADMIN: "System administrator",
    RoleName.OPERATOR: "Station operating staff",
    RoleName.HQ: "Headquarters command",
}


def role_key(role_id: int) -> str:
    return f"{ROLE_PREFIX}{role_id}"


class RoleRepository(Repository[Role]):
    record_type = Role
    entity = "role"
    prefix = ROLE_PREFIX
    updatable = frozenset({"name", "description"})

    def create(self, role: Role) -> Role:
        role.id = self.sequence.next_id()
        self._stamp_new(role)
        self.store.put(role_key(role.id), role.to_json())
        self.log.info("role.create ok id=%s name=%s", role.id, role.name.value)
        return role

    def get(self, role_id: int) -> Role:
        return self._load(role_key(role_id), id=role_id)

    def list(self) -> List[Role]:
        return self._all(self._scan())

    def update(self, role: Role) -> Role:
        existing = self.get(role.id)
        role.created_at = existing.created_at
        role.updated_at = self.clock()
        self.store.put(role_key(role.id), role.to_json())
        return role

    def update_partial(self, role_id: int, fields: Mapping[str, Any]) -> Role:
        updated = self._merge(self.get(role_id), fields)
        self.store.put(role_key(role_id), updated.to_json())
        return updated

    def delete(self, role_id: int) -> None:
        self.get(role_id)
        self.store.delete(role_key(role_id))
        self.log.info("role.delete ok id=%s", role_id)

    def ensure_defaults(self) -> List[Role]:
        """Create one row per built-in role name that has none yet."""
        present = {r.name for r in self.list()}
        created = []
        for name in RoleName:
            if name not in present:
                created.append(self.create(Role(name=name, description=DEFAULT_DESCRIPTIONS[name])))
        return created


__all__ = ["RoleRepository", "role_key"]
