"""Storage table and record shapes.

``KVEntry`` is the only table: one row per key. Everything else in this
module is a JSON record stored as the value of some key; field names (and
aliases) are the on-disk JSON names.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import Column, LargeBinary

from radarhub_core.db import Base
from radarhub_core.timewindow import validate_hhmm


class KVEntry(Base):
    __tablename__ = "kv"
    key = Column(LargeBinary, primary_key=True)
    value = Column(LargeBinary, nullable=False)


class RoleName(str, Enum):
    ADMIN = "ADMIN"        # system administration
    OPERATOR = "OPERATOR"  # station operating staff
    HQ = "HQ"              # headquarters command


STATUS_ACTIVE = "ACTIVE"
STATUS_INACTIVE = "INACTIVE"


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> bytes:
        return self.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes):
        return cls.model_validate_json(raw)


class Role(Record):
    id: int = 0
    name: RoleName
    description: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0


class User(Record):
    id: int = 0
    username: str
    password: str = ""
    full_name: str = ""
    role: RoleName = Field(alias="role_id")
    # Set for operators: the station the user belongs to.
    station_id: Optional[int] = None
    last_login: Optional[int] = None
    created_at: int = 0
    updated_at: int = 0


class Station(Record):
    id: int = 0
    name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    elevation: float = 0.0          # metres above sea level
    distance_to_coast: float = 0.0  # km
    status: str = ""
    note: str = ""
    created_at: int = 0
    updated_at: int = 0


class Schedule(Record):
    """One daily HHMM interval plus the crew on duty for it."""

    id: int = 0
    station_id: int
    start_hhmm: str
    end_hhmm: str
    commander: str = ""
    crew: str = ""
    phone: str = ""
    created_at: int = 0
    updated_at: int = 0

    @field_validator("start_hhmm", "end_hhmm")
    @classmethod
    def _check_hhmm(cls, v: str) -> str:
        return validate_hhmm(v)


class Command(Record):
    id: int = 0
    to_station_id: int
    content: str = ""
    from_user_id: str = ""
    sent_at: int = 0
    acknowledged_at: Optional[int] = None
    created_at: int = 0

    @property
    def acknowledged(self) -> bool:
        return self.acknowledged_at is not None


class Document(Record):
    id: int = 0
    title: str = ""
    description: str = ""
    file_url: str = ""
    file_name: str = ""
    file_size: int = 0
    file_type: str = ""
    uploaded_by: int = 0
    created_at: int = 0
    updated_at: int = 0


class Vessel(Record):
    id: int = 0
    name: str = ""
    mmsi: str = ""  # Maritime Mobile Service Identity
    kind: str = ""
    size: str = ""
    weight: str = ""
    vessel_class: str = Field("", alias="class")
    specs: str = ""
    max_speed: str = ""
    description: str = ""
    created_at: int = 0
    updated_at: int = 0


__all__ = [
    "KVEntry",
    "RoleName",
    "STATUS_ACTIVE",
    "STATUS_INACTIVE",
    "Record",
    "Role",
    "User",
    "Station",
    "Schedule",
    "Command",
    "Document",
    "Vessel",
]
