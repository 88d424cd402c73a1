"""
Access Guard Module - Black Box Interface

Purpose: Gate protected routes on an authentication key and a role set
Interface: require_roles(*roles) -> FastAPI dependency, authorize()
Hidden: Header extraction, key resolution, error selection

Each route declares its own allowed roles when it is registered:

    @router.get("/users", dependencies=[Depends(require_roles(Role.TEACHER))])

There is no process-wide role configuration.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import redis.asyncio as redis
from fastapi import Request

from weather_api.modules.api.models import Role, UserRecord
from weather_api.modules.auth.errors import (
    ApiError,
    Forbidden,
    InvalidCredential,
    MissingCredential,
    ServiceUnavailable,
    StoreFailure,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADER = "X-AUTH-KEY"


@dataclass
class AccessDecision:
    """Outcome of an authorization check."""
    ok: bool
    user: Optional[UserRecord] = None
    error: Optional[ApiError] = None


async def authorize(authenticator, token: Optional[str], allowed_roles: Iterable[Role]) -> AccessDecision:
    """
    Decide whether a presented key may use an operation.

    Performs exactly one store lookup and never caches. A store error
    rejects the request; it never lets it through.

    Args:
        authenticator: Object with an async resolve(token) method
        token: Authentication key from the request, if any
        allowed_roles: Roles permitted on the operation

    Returns:
        AccessDecision carrying the resolved user or the rejection
    """
    if not token:
        return AccessDecision(ok=False, error=MissingCredential())

    try:
        user = await authenticator.resolve(token)
    except redis.RedisError as e:
        logger.error(f"Error resolving authentication key: {e}")
        return AccessDecision(ok=False, error=StoreFailure("Failed to verify authentication key"))

    if user is None:
        return AccessDecision(ok=False, error=InvalidCredential())

    if user.role not in set(allowed_roles):
        return AccessDecision(ok=False, user=user, error=Forbidden())

    return AccessDecision(ok=True, user=user)


class AccessGuard:
    """
    FastAPI dependency enforcing an allowed-role set on one route.

    The authenticator and header name are read from app.state, which the
    application fills in at startup.
    """

    def __init__(self, allowed_roles: Iterable[Role], log_attempts: bool = True):
        """
        Initialize the guard.

        Args:
            allowed_roles: Roles permitted on the guarded route
            log_attempts: Whether to log rejected requests

        Raises:
            ValueError: If no role is allowed
        """
        self.allowed_roles = frozenset(Role(role) for role in allowed_roles)
        if not self.allowed_roles:
            raise ValueError("An access guard needs at least one allowed role")
        self.log_attempts = log_attempts

    def extract_token(self, request: Request) -> Optional[str]:
        """Extract the authentication key from request headers."""
        header_name = getattr(request.app.state, "auth_header", DEFAULT_HEADER)
        token = request.headers.get(header_name)
        return token.strip() if token else None

    async def __call__(self, request: Request) -> UserRecord:
        """Authorize the request or raise the matching ApiError."""
        authenticator = getattr(request.app.state, "authenticator", None)
        if authenticator is None:
            raise ServiceUnavailable()

        token = self.extract_token(request)
        decision = await authorize(authenticator, token, self.allowed_roles)

        if not decision.ok:
            if self.log_attempts:
                if isinstance(decision.error, MissingCredential):
                    logger.warning(f"Request to {request.url.path} without authentication key")
                elif isinstance(decision.error, InvalidCredential):
                    logger.warning(f"Invalid authentication key attempted: {token[:8]}...")
                elif isinstance(decision.error, Forbidden):
                    logger.warning(
                        f"Access forbidden for role {decision.user.role.value} on {request.url.path}"
                    )
            raise decision.error

        # Store the user for downstream use
        request.state.user = decision.user
        return decision.user

    def __repr__(self) -> str:
        roles = ", ".join(sorted(role.value for role in self.allowed_roles))
        return f"AccessGuard({roles})"


def require_roles(*roles: Role) -> AccessGuard:
    """
    Factory for a per-route access guard.

    Args:
        roles: Roles permitted on the route

    Returns:
        Configured AccessGuard usable with Depends()
    """
    return AccessGuard(allowed_roles=roles)


__all__ = [
    "AccessDecision",
    "AccessGuard",
    "authorize",
    "require_roles",
]
