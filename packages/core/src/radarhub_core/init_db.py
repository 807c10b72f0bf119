"""Store initialization helper.

Opens the store named by the settings, creates its table and, optionally,
the built-in role rows.
"""
from __future__ import annotations

import logging
from typing import Optional

from .config import Settings
from .repositories import Repositories
from .store import KVStore

logger = logging.getLogger("radarhub_core.init_db")


def open_store(settings: Optional[Settings] = None) -> KVStore:
    settings = settings or Settings()
    return KVStore.open_url(settings.store_url())


def init_db(settings: Optional[Settings] = None, ensure_roles: bool = True) -> Repositories:
    """Open the store and wire every repository to it.

    Parameters
    ----------
    settings: Settings
        Where the store lives and which operating clock offset to use.
    ensure_roles: bool
        If True, create ADMIN/OPERATOR/HQ role rows that are missing.
    """
    settings = settings or Settings()
    repos = Repositories.build(open_store(settings), tz_offset_hours=settings.tz_offset_hours)
    if ensure_roles:
        created = repos.roles.ensure_defaults()
        if created:
            logger.info("init_db roles created=%s", [r.name.value for r in created])
    return repos


__all__ = ["open_store", "init_db"]
