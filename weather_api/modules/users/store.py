import json
import logging
from datetime import datetime
from typing import List, Optional

from weather_api.modules.api.models import Role, UserRecord, is_identifier, utc_now

logger = logging.getLogger(__name__)

CHANGELOG_KEY = "changelog"


class UserStore:
    def __init__(self, redis_client):
        """
        Initialize the credential store.

        Args:
            redis_client: Async Redis client (decode_responses=True)

        Layout:
            user:{id}             -> UserRecord JSON
            user:email:{email}    -> id
            user:token:{token}    -> id
            users:all             -> set of ids
            users:created         -> zset id -> creation timestamp
            users:last_login      -> zset id -> last login timestamp
            changelog             -> list of archived deletions
        """
        self.redis = redis_client

    @staticmethod
    def _user_key(user_id: str) -> str:
        return f"user:{user_id}"

    @staticmethod
    def _email_key(email: str) -> str:
        return f"user:email:{email}"

    @staticmethod
    def _token_key(token: str) -> str:
        return f"user:token:{token}"

    async def _load(self, user_id: str) -> Optional[UserRecord]:
        data = await self.redis.get(self._user_key(user_id))
        if data:
            return UserRecord.model_validate_json(data)
        return None

    async def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        """
        Get a user by identifier.

        Malformed identifiers are reported as not found without
        touching the store.
        """
        if not is_identifier(user_id):
            return None
        return await self._load(user_id)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        if not email:
            return None
        user_id = await self.redis.get(self._email_key(email))
        if not user_id:
            return None

        record = await self._load(user_id)
        # Index entries are written separately from the document
        if record is None or record.email != email:
            return None
        return record

    async def find_by_token(self, token: str) -> Optional[UserRecord]:
        """
        Resolve an authentication key to its user.

        This sits on the hot path of every protected request: one index
        read plus one document read.
        """
        if not token:
            return None
        user_id = await self.redis.get(self._token_key(token))
        if not user_id:
            return None

        record = await self._load(user_id)
        if record is None or record.authentication_key != token:
            return None
        return record

    async def list_all(self) -> List[UserRecord]:
        """Get all users ordered by creation date."""
        user_ids = await self.redis.zrange("users:created", 0, -1)
        if not user_ids:
            return []

        documents = await self.redis.mget([self._user_key(user_id) for user_id in user_ids])
        return [UserRecord.model_validate_json(doc) for doc in documents if doc]

    async def insert(self, record: UserRecord) -> str:
        """
        Insert a new user document.

        Email uniqueness is the caller's check-then-insert; the store
        does not enforce it.

        Returns:
            The new user's identifier
        """
        await self.redis.set(self._user_key(record.id), record.model_dump_json())
        await self._write_indexes(record, previous=None)
        return record.id

    async def replace(self, user_id: str, record: UserRecord) -> int:
        """
        Replace a user document wholesale, keeping its identifier.

        Returns:
            Matched count (0 or 1)
        """
        previous = await self.find_by_id(user_id)
        if previous is None:
            return 0

        record = record.model_copy(update={"id": user_id})
        await self.redis.set(self._user_key(user_id), record.model_dump_json())
        await self._write_indexes(record, previous=previous)
        return 1

    async def delete(self, user_id: str) -> int:
        """
        Delete a user document and its index entries.

        Returns:
            Deleted count (0 or 1)
        """
        record = await self.find_by_id(user_id)
        if record is None:
            return 0

        deleted = await self.redis.delete(self._user_key(user_id))
        await self._drop_index(self._email_key(record.email), user_id)
        if record.authentication_key:
            await self._drop_index(self._token_key(record.authentication_key), user_id)
        await self.redis.srem("users:all", user_id)
        await self.redis.zrem("users:created", user_id)
        await self.redis.zrem("users:last_login", user_id)
        return deleted

    async def archive(self, record: UserRecord) -> None:
        """Write a deletion entry for a user to the changelog."""
        entry = {
            "deleted_user_details": record.model_dump(mode="json", exclude={"authentication_key"}),
            "deletion_date_time": utc_now().isoformat(),
        }
        await self.redis.lpush(CHANGELOG_KEY, json.dumps(entry))

    async def get_changelog(self, limit: int = 100) -> List[dict]:
        """Get the most recent changelog entries, newest first."""
        entries = await self.redis.lrange(CHANGELOG_KEY, 0, limit - 1)
        return [json.loads(entry) for entry in entries]

    async def update_roles_created_between(
        self, start: datetime, end: datetime, new_role: Role
    ) -> int:
        """
        Set the role of every user created within [start, end].

        Returns:
            Modified count; users already holding new_role are not counted
        """
        user_ids = await self.redis.zrangebyscore(
            "users:created", start.timestamp(), end.timestamp()
        )

        modified = 0
        for user_id in user_ids:
            record = await self._load(user_id)
            if record is None or record.role == new_role:
                continue
            modified += await self.replace(user_id, record.model_copy(update={"role": new_role}))

        logger.info(f"Changed role to {new_role.value} for {modified} users")
        return modified

    async def delete_students_last_login_between(self, start: datetime, end: datetime) -> int:
        """
        Delete students whose last login lies within [start, end].

        Returns:
            Deleted count
        """
        user_ids = await self.redis.zrangebyscore(
            "users:last_login", start.timestamp(), end.timestamp()
        )

        deleted = 0
        for user_id in user_ids:
            record = await self._load(user_id)
            if record is None or record.role != Role.STUDENT:
                continue
            deleted += await self.delete(user_id)

        logger.info(f"Deleted {deleted} inactive students")
        return deleted

    async def _write_indexes(self, record: UserRecord, previous: Optional[UserRecord]) -> None:
        if previous is not None:
            if previous.email != record.email:
                await self._drop_index(self._email_key(previous.email), record.id)
            if (
                previous.authentication_key
                and previous.authentication_key != record.authentication_key
            ):
                await self._drop_index(self._token_key(previous.authentication_key), record.id)

        await self.redis.set(self._email_key(record.email), record.id)
        if record.authentication_key:
            await self.redis.set(self._token_key(record.authentication_key), record.id)

        await self.redis.sadd("users:all", record.id)
        await self.redis.zadd("users:created", {record.id: record.creation_date.timestamp()})
        if record.last_login:
            await self.redis.zadd("users:last_login", {record.id: record.last_login.timestamp()})
        else:
            await self.redis.zrem("users:last_login", record.id)

    async def _drop_index(self, key: str, user_id: str) -> None:
        # Leave the entry alone if another user has claimed it since
        if await self.redis.get(key) == user_id:
            await self.redis.delete(key)
