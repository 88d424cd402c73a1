"""
API Module - Black Box Interface

Purpose: HTTP routing and shared data models
Interface: REST API routers (auth, users, readings) and pydantic models
Hidden: Request validation, response envelopes

The API module only orchestrates - it contains no business logic.
All logic is delegated to the auth, users and readings modules.
"""

from .models import (
    Credentials,
    DateRangeRequest,
    LogoutRequest,
    PrecipitationUpdate,
    ReadingCreate,
    Role,
    RoleUpdateRequest,
    UserRecord,
    UserReplaceRequest,
    UserResponse,
    WeatherReading,
)

__all__ = [
    "Credentials",
    "DateRangeRequest",
    "LogoutRequest",
    "PrecipitationUpdate",
    "ReadingCreate",
    "Role",
    "RoleUpdateRequest",
    "UserRecord",
    "UserReplaceRequest",
    "UserResponse",
    "WeatherReading",
]
