"""
Authentication module for the Weather API.

This module handles registration, login and logout for users stored in
the credential store, and resolves authentication keys back to users
for the access guard.
"""

import json
import logging
import secrets
from typing import Optional

import redis.asyncio as redis

from weather_api.modules.api.models import Role, UserRecord, utc_now

from .errors import Conflict, InvalidCredentials, NotFound
from .passwords import PasswordHasher

logger = logging.getLogger(__name__)

AUDIT_KEY = "auth:audit"
AUDIT_LIMIT = 10000


class Authenticator:
    """
    Authenticator for email/password users.

    Issues opaque authentication keys at login and clears them at logout.
    Keys carry no expiry: a key stays valid until logout or the next login
    replaces it.
    """

    def __init__(self, user_store, hasher: PasswordHasher, redis_client=None):
        """
        Initialize the authenticator.

        Args:
            user_store: Credential store (UserStore)
            hasher: Password hasher
            redis_client: Async Redis client for the audit trail; no audit when None
        """
        self.users = user_store
        self.hasher = hasher
        self.redis = redis_client
        self._dummy_hash: Optional[str] = None

    async def register(self, email: str, password: str) -> UserRecord:
        """
        Register a new user with the least privileged role.

        The uniqueness check and the insert are two separate store calls;
        two concurrent registrations of one email can both succeed.

        Raises:
            Conflict: If the email is already registered
        """
        if await self.users.find_by_email(email):
            raise Conflict()

        password_hash = await self.hasher.hash_async(password)
        record = UserRecord(
            email=email,
            password_hash=password_hash,
            role=Role.STUDENT,
            creation_date=utc_now(),
        )
        await self.users.insert(record)

        await self._log_event("user_registered", {"user_id": record.id})
        logger.info(f"Registered user {record.id}")
        return record

    async def authenticate(self, email: str, password: str) -> str:
        """
        Verify an email/password pair and start a new session.

        Returns:
            The new authentication key

        Raises:
            InvalidCredentials: Unknown email or wrong password (indistinguishable)
        """
        user = await self.users.find_by_email(email)

        if user is None:
            # Spend the same bcrypt work as a real comparison
            await self.hasher.verify_async(password, await self._get_dummy_hash())
            await self._log_event("login_failed", {"reason": "invalid_credentials"})
            raise InvalidCredentials()

        if not await self.hasher.verify_async(password, user.password_hash):
            await self._log_event("login_failed", {"reason": "invalid_credentials"})
            raise InvalidCredentials()

        # Generate cryptographically secure key (32 bytes = 256 bits)
        token = secrets.token_urlsafe(32)

        updated = user.model_copy(update={"authentication_key": token, "last_login": utc_now()})
        await self.users.replace(user.id, updated)

        await self._log_event("user_logged_in", {"user_id": user.id})
        logger.info(f"User {user.id} logged in")
        return token

    async def invalidate(self, token: str) -> None:
        """
        End the session owning an authentication key.

        Raises:
            NotFound: If no user holds the key (never issued or already cleared)
        """
        user = await self.resolve(token)
        if user is None:
            raise NotFound("User was not found.")

        await self.users.replace(user.id, user.model_copy(update={"authentication_key": None}))

        await self._log_event("user_logged_out", {"user_id": user.id})
        logger.info(f"User {user.id} logged out")

    async def resolve(self, token: str) -> Optional[UserRecord]:
        """Look up the user holding an authentication key. One store lookup."""
        if not token:
            return None
        return await self.users.find_by_token(token)

    async def _get_dummy_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = await self.hasher.hash_async(secrets.token_urlsafe(16))
        return self._dummy_hash

    async def _log_event(self, event_type: str, data: dict):
        """
        Append a security event to the audit trail.

        Best effort: a store error here is logged and does not change the
        outcome of the operation being audited.
        """
        if self.redis is None:
            return

        event = {
            "type": event_type,
            "data": data,
            "timestamp": utc_now().isoformat(),
        }

        try:
            await self.redis.lpush(AUDIT_KEY, json.dumps(event))
            # Keep last 10000 events
            await self.redis.ltrim(AUDIT_KEY, 0, AUDIT_LIMIT - 1)
        except redis.RedisError as e:
            logger.warning(f"Failed to write audit event {event_type}: {e}")
