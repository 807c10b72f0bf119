"""User accounts.

Each user is stored twice: ``user:<username>`` and ``user_id:<id>`` hold
the same JSON. Both copies are written and deleted in one batch.
"""
from __future__ import annotations

import hmac
from typing import Any, List, Mapping

from radarhub_core.errors import Conflict, ValidationFailure
from radarhub_core.models import RoleName, User
from radarhub_core.repositories.base import Repository

USER_PREFIX = "user:"
USER_ID_PREFIX = "user_id:"


def user_key(username: str) -> str:
    return f"{USER_PREFIX}{username}"


def user_id_key(user_id: int) -> str:
    return f"{USER_ID_PREFIX}{user_id}"


class UserRepository(Repository[User]):
    record_type = User
    entity = "user"
    prefix = USER_PREFIX
    updatable = frozenset({"password", "full_name", "role", "station_id"})

    def _save(self, user: User) -> None:
        raw = user.to_json()
        with self.store.batch() as b:
            b.put(user_key(user.username), raw)
            b.put(user_id_key(user.id), raw)

    def create(self, user: User) -> User:
        self._require(user.username, "username")
        self._require(user.password, "password")
        # check-then-write: two concurrent creates of one username can both pass
        if self.store.exists(user_key(user.username)):
            self.log.warning("user.create conflict username=%s", user.username)
            raise Conflict("username already exists", username=user.username)
        user.id = self.sequence.next_id()
        self._stamp_new(user)
        self._save(user)
        self.log.info("user.create ok id=%s username=%s role=%s", user.id, user.username, user.role.value)
        return user

    def get_by_id(self, user_id: int) -> User:
        return self._load(user_id_key(user_id), id=user_id)

    def get_by_username(self, username: str) -> User:
        return self._load(user_key(username), username=username)

    def list(self) -> List[User]:
        return self._all(self._scan(USER_PREFIX))

    def list_by_role(self, role: RoleName) -> List[User]:
        return [u for u in self.list() if u.role == role]

    def _update(self, user: User, fields: Mapping[str, Any]) -> User:
        # Empty strings leave the password or name as they were.
        fields = {k: v for k, v in fields.items() if not (k in ("password", "full_name") and v == "")}
        updated = self._merge(user, fields)
        self._save(updated)
        self.log.info("user.update ok id=%s fields=%s", updated.id, sorted(fields))
        return updated

    def update_partial(self, user_id: int, fields: Mapping[str, Any]) -> User:
        return self._update(self.get_by_id(user_id), fields)

    def update_by_username(self, username: str, fields: Mapping[str, Any]) -> User:
        return self._update(self.get_by_username(username), fields)

    def update(self, user: User) -> User:
        """Replace a user wholesale, keyed by username."""
        self._require(user.username, "username")
        self._require(user.password, "password")
        existing = self.get_by_username(user.username)
        user.id = existing.id
        user.created_at = existing.created_at
        user.updated_at = self.clock()
        self._save(user)
        return user

    def _delete(self, user: User) -> None:
        with self.store.batch() as b:
            b.delete(user_key(user.username))
            b.delete(user_id_key(user.id))
        self.log.info("user.delete ok id=%s username=%s", user.id, user.username)

    def delete(self, user_id: int) -> None:
        self._delete(self.get_by_id(user_id))

    def delete_by_username(self, username: str) -> None:
        self._delete(self.get_by_username(username))

    def verify_password(self, username: str, password: str) -> User:
        """Return the user when ``password`` matches the stored one."""
        user = self.get_by_username(username)
        if not hmac.compare_digest(user.password.encode("utf-8"), password.encode("utf-8")):
            self.log.warning("user.login fail username=%s", username)
            raise ValidationFailure("wrong password", field="password")
        return user

    def record_login(self, username: str) -> User:
        user = self.get_by_username(username)
        user.last_login = self.clock()
        self._save(user)
        return user


__all__ = ["UserRepository", "user_key", "user_id_key"]
