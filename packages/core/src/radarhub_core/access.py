"""Role-based access decisions.

Pure predicates evaluated by the request layer before it calls a
repository. Operators bound to a station (``user.station_id`` set) may only
perform station-scoped actions on that station.
"""
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Optional

from radarhub_core.errors import PermissionDenied
from radarhub_core.models import RoleName, User

logger = logging.getLogger("radarhub_core.access")

ADMIN = RoleName.ADMIN
OPERATOR = RoleName.OPERATOR
HQ = RoleName.HQ
ANY_ROLE: FrozenSet[RoleName] = frozenset(RoleName)

POLICY: Dict[str, FrozenSet[RoleName]] = {
    "user.manage": frozenset({ADMIN}),
    "role.manage": frozenset({ADMIN}),
    "station.create": frozenset({ADMIN}),
    "station.delete": frozenset({ADMIN}),
    "station.read": ANY_ROLE,
    "station.update": ANY_ROLE,
    "schedule.read": ANY_ROLE,
    "schedule.write": frozenset({OPERATOR}),
    "command.create": frozenset({HQ}),
    "command.read": ANY_ROLE,
    "command.acknowledge": frozenset({OPERATOR}),
    "command.list_unacknowledged": frozenset({OPERATOR}),
    "document.read": ANY_ROLE,
    "document.write": frozenset({ADMIN, HQ}),
    "vessel.read": ANY_ROLE,
    "vessel.write": frozenset({ADMIN, HQ}),
}

# Actions an operator may only take on their own station.
STATION_SCOPED = frozenset({"schedule.write", "command.acknowledge", "command.list_unacknowledged"})


def is_allowed(user: User, action: str, station_id: Optional[int] = None) -> bool:
    roles = POLICY.get(action)
    if roles is None or user.role not in roles:
        return False
    if (
        user.role == OPERATOR
        and action in STATION_SCOPED
        and station_id is not None
        and user.station_id is not None
        and user.station_id != station_id
    ):
        return False
    return True


def require(user: User, action: str, station_id: Optional[int] = None) -> None:
    """Raise ``PermissionDenied`` unless ``user`` may perform ``action``."""
    if not is_allowed(user, action, station_id):
        logger.warning("access.denied user=%s role=%s action=%s station=%s",
                       user.username, user.role.value, action, station_id)
        raise PermissionDenied("access denied", action=action, role=user.role.value)


__all__ = ["POLICY", "STATION_SCOPED", "is_allowed", "require"]
