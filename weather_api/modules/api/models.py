"""
Weather API shared data models.

These models define the structure of all data passed between
components: documents kept in the store, request bodies and
response projections.
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


# Enums


class Role(str, Enum):
    """Access tier of a user. Tiers are not ordered."""

    STUDENT = "student"
    TEACHER = "teacher"
    SENSOR = "sensor"


# Helpers


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 date or datetime into an aware UTC datetime.

    Accepts "2021-05-07", "2021-05-07T10:30:00" and offsets such as "Z".

    Raises:
        ValueError: If the value is not ISO 8601
    """
    return ensure_utc(datetime.fromisoformat(value.strip()))


def new_identifier() -> str:
    return uuid.uuid4().hex


def is_identifier(value: str) -> bool:
    """Check that a value has the store's identifier format (32 hex chars)."""
    if not value or len(value) != 32:
        return False
    try:
        uuid.UUID(hex=value)
    except ValueError:
        return False
    return True


def _coerce_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return parse_timestamp(value)
    if isinstance(value, datetime):
        return ensure_utc(value)
    return value


def _check_password(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


# Store Documents


class UserRecord(BaseModel):
    """User document as kept in the credential store."""

    id: str = Field(default_factory=new_identifier)
    email: str
    password_hash: str
    role: Role = Role.STUDENT
    authentication_key: Optional[str] = None
    creation_date: datetime = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None

    @field_validator("creation_date", "last_login", mode="before")
    @classmethod
    def normalize_timestamps(cls, v):
        return _coerce_timestamp(v)


class WeatherReading(BaseModel):
    """Weather reading document as kept in the reading store."""

    id: str = Field(default_factory=new_identifier)
    device_name: str
    date_time: datetime = Field(default_factory=utc_now)
    precipitation: Optional[float] = None
    atmospheric_pressure: Optional[float] = None
    humidity: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    max_wind_speed: Optional[float] = None
    solar_radiation: Optional[float] = None
    temp_celsius: Optional[float] = None
    vapor_pressure: Optional[float] = None
    wind_direction: Optional[float] = None

    @field_validator("date_time", mode="before")
    @classmethod
    def normalize_date_time(cls, v):
        return _coerce_timestamp(v)


# Request Models (API Input)


class Credentials(BaseModel):
    """Email and password pair used by login, registration and user creation."""

    email: str = Field(..., min_length=3, max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)


class LogoutRequest(BaseModel):
    """Request to end the session owning an authentication key."""

    model_config = ConfigDict(populate_by_name=True)

    authentication_key: Optional[str] = Field(None, alias="authenticationKey")


class UserReplaceRequest(BaseModel):
    """Full replacement of a user document."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, description="Plain password or an existing bcrypt hash")
    role: Role
    authentication_key: Optional[str] = Field(None, alias="authenticationKey")
    creation_date: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("creation_date", "last_login", mode="before")
    @classmethod
    def normalize_timestamps(cls, v):
        return _coerce_timestamp(v)


class DateRangeRequest(BaseModel):
    """Inclusive date range."""

    start_date: datetime
    end_date: datetime

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_timestamps(cls, v):
        return _coerce_timestamp(v)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class RoleUpdateRequest(DateRangeRequest):
    """Bulk role change for users created within a date range."""

    new_role: Role


class ReadingCreate(BaseModel):
    """Weather reading submitted by a sensor. The server stamps date_time."""

    device_name: str = Field(..., min_length=1, max_length=100)
    precipitation: Optional[float] = None
    atmospheric_pressure: Optional[float] = None
    humidity: Optional[float] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    max_wind_speed: Optional[float] = None
    solar_radiation: Optional[float] = None
    temp_celsius: Optional[float] = None
    vapor_pressure: Optional[float] = None
    wind_direction: Optional[float] = None

    def to_reading(self, date_time: Optional[datetime] = None) -> WeatherReading:
        return WeatherReading(date_time=date_time or utc_now(), **self.model_dump())


class PrecipitationUpdate(BaseModel):
    """New precipitation value for a reading."""

    precipitation: float


# Response Models (API Output)


class UserResponse(BaseModel):
    """Public projection of a user; never carries the hash or the key."""

    id: str
    email: str
    role: Role
    creation_date: datetime
    last_login: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(
            id=record.id,
            email=record.email,
            role=record.role,
            creation_date=record.creation_date,
            last_login=record.last_login,
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status", pattern="^(healthy|unhealthy)$")
    redis: str = Field(..., description="Redis connection status")
    version: str = Field(default="1.0.0", description="API version")


def users_payload(records: List[UserRecord]) -> List[dict]:
    return [UserResponse.from_record(record).model_dump(mode="json") for record in records]
