"""
Authentication Module - Black Box Interface

Purpose: Register users, verify passwords, issue and revoke authentication keys
Interface: Authenticator.register(), authenticate(), invalidate(), resolve()
Hidden: Key format, hashing scheme, audit trail

Errors raised here belong to the shared ApiError taxonomy.
"""

from .auth import Authenticator
from .errors import (
    ApiError,
    BadRequest,
    Conflict,
    Forbidden,
    InvalidCredential,
    InvalidCredentials,
    MissingCredential,
    NotFound,
    ServiceUnavailable,
    StoreFailure,
)
from .passwords import PasswordHasher

__all__ = [
    "Authenticator",
    "PasswordHasher",
    "ApiError",
    "BadRequest",
    "Conflict",
    "Forbidden",
    "InvalidCredential",
    "InvalidCredentials",
    "MissingCredential",
    "NotFound",
    "ServiceUnavailable",
    "StoreFailure",
]
