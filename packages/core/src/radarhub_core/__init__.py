"""Core storage and domain services for Radar Hub.

Contains the key-value store adapter, id sequences, entity repositories,
schedule time-window checks, access rules and configuration.
"""

from .config import Settings  # noqa: F401
from .errors import Conflict, NotFound, PermissionDenied, StorageFailure, ValidationFailure  # noqa: F401
from .store import KVStore  # noqa: F401
