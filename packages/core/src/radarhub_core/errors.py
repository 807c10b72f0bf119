"""Error kinds raised by the store and the repositories.

Callers branch on the exception class (or ``exc.kind``), never on the
message text.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    STORAGE = "storage"
    PERMISSION = "permission"


class RadarHubError(Exception):
    """Base class; ``context`` carries the key, id or field involved."""

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def __str__(self) -> str:
        if not self.context:
            return self.message
        extra = " ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        return f"{self.message} ({extra})"


class NotFound(RadarHubError):
    kind = ErrorKind.NOT_FOUND


class Conflict(RadarHubError):
    kind = ErrorKind.CONFLICT


class ValidationFailure(RadarHubError, ValueError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None, **context: Any) -> None:
        if field is not None:
            context["field"] = field
        super().__init__(message, **context)
        self.field = field


class StorageFailure(RadarHubError):
    kind = ErrorKind.STORAGE


class PermissionDenied(RadarHubError):
    kind = ErrorKind.PERMISSION


__all__ = [
    "ErrorKind",
    "RadarHubError",
    "NotFound",
    "Conflict",
    "ValidationFailure",
    "StorageFailure",
    "PermissionDenied",
]
