"""
Shared pytest fixtures for Weather API tests.

This module provides common fixtures including:
- InMemoryRedis: async stand-in for the Redis commands the stores use
- Module fixtures (stores, hasher, authenticator)
- FastAPI test client wired to the in-memory store
"""

import asyncio
import fnmatch
import os
import sys
from typing import Dict, List, Optional, Set

import pytest
import redis.asyncio as redis
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from weather_api.config.provider import AuthConfig, EnvConfigProvider
from weather_api.main import create_app
from weather_api.modules.api.models import Role
from weather_api.modules.auth import Authenticator, PasswordHasher
from weather_api.modules.readings import ReadingStore
from weather_api.modules.users import UserStore

# Lowest bcrypt cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


# =============================================================================
# In-memory Redis
# =============================================================================


class InMemoryRedis:
    """
    Minimal async Redis double covering strings, sets, sorted sets and lists.

    Values are stored as str, matching a client created with
    decode_responses=True. Command names listed in `failing` raise
    redis.ConnectionError, for failure injection.
    """

    def __init__(self):
        self.strings: Dict[str, str] = {}
        self.sets: Dict[str, Set[str]] = {}
        self.zsets: Dict[str, Dict[str, float]] = {}
        self.lists: Dict[str, List[str]] = {}
        self.failing: Set[str] = set()
        self.calls: List[str] = []

    def _record(self, command: str) -> None:
        self.calls.append(command)
        if command in self.failing:
            raise redis.ConnectionError(f"injected failure on {command}")

    def fail(self, *commands: str) -> None:
        self.failing.update(commands)

    def keys_matching(self, pattern: str) -> List[str]:
        every = set(self.strings) | set(self.sets) | set(self.zsets) | set(self.lists)
        return sorted(key for key in every if fnmatch.fnmatchcase(key, pattern))

    # Strings

    async def get(self, key: str) -> Optional[str]:
        self._record("get")
        return self.strings.get(key)

    async def set(self, key: str, value) -> bool:
        self._record("set")
        self.strings[key] = str(value)
        return True

    async def mget(self, keys) -> List[Optional[str]]:
        self._record("mget")
        return [self.strings.get(key) for key in keys]

    async def delete(self, *keys: str) -> int:
        self._record("delete")
        removed = 0
        for key in keys:
            for store in (self.strings, self.sets, self.zsets, self.lists):
                if key in store:
                    del store[key]
                    removed += 1
        return removed

    async def exists(self, *keys: str) -> int:
        self._record("exists")
        return sum(1 for key in keys if self.keys_matching(key))

    # Sets

    async def sadd(self, key: str, *members: str) -> int:
        self._record("sadd")
        current = self.sets.setdefault(key, set())
        added = len(set(members) - current)
        current.update(members)
        return added

    async def srem(self, key: str, *members: str) -> int:
        self._record("srem")
        current = self.sets.get(key, set())
        removed = len(current & set(members))
        current.difference_update(members)
        return removed

    async def smembers(self, key: str) -> Set[str]:
        self._record("smembers")
        return set(self.sets.get(key, set()))

    # Sorted sets

    def _ordered(self, key: str, reverse: bool = False) -> List[str]:
        members = self.zsets.get(key, {})
        return [
            member
            for member, _ in sorted(members.items(), key=lambda item: (item[1], item[0]), reverse=reverse)
        ]

    async def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        self._record("zadd")
        current = self.zsets.setdefault(key, {})
        added = len(set(mapping) - set(current))
        current.update({member: float(score) for member, score in mapping.items()})
        return added

    async def zrem(self, key: str, *members: str) -> int:
        self._record("zrem")
        current = self.zsets.get(key, {})
        removed = 0
        for member in members:
            if current.pop(member, None) is not None:
                removed += 1
        return removed

    async def zrange(self, key: str, start: int, end: int) -> List[str]:
        self._record("zrange")
        ordered = self._ordered(key)
        stop = None if end == -1 else end + 1
        return ordered[start:stop]

    async def zrangebyscore(self, key: str, min, max, start=None, num=None) -> List[str]:
        self._record("zrangebyscore")
        low, high = float(min), float(max)
        members = self.zsets.get(key, {})
        matched = [m for m in self._ordered(key) if low <= members[m] <= high]
        if start is not None and num is not None:
            matched = matched[start:start + num]
        return matched

    async def zrevrangebyscore(self, key: str, max, min, start=None, num=None) -> List[str]:
        self._record("zrevrangebyscore")
        low, high = float(min), float(max)
        members = self.zsets.get(key, {})
        matched = [m for m in self._ordered(key, reverse=True) if low <= members[m] <= high]
        if start is not None and num is not None:
            matched = matched[start:start + num]
        return matched

    # Lists

    async def lpush(self, key: str, *values: str) -> int:
        self._record("lpush")
        current = self.lists.setdefault(key, [])
        for value in values:
            current.insert(0, value)
        return len(current)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        self._record("ltrim")
        current = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        self.lists[key] = current[start:stop]
        return True

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        self._record("lrange")
        current = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        return current[start:stop]

    # Connection

    async def ping(self) -> bool:
        self._record("ping")
        return True

    async def aclose(self) -> None:
        return None


class StaticConfigProvider(EnvConfigProvider):
    """Environment configuration with a cheap bcrypt cost."""

    def get_auth_config(self) -> AuthConfig:
        config = super().get_auth_config()
        config.bcrypt_rounds = TEST_BCRYPT_ROUNDS
        return config


# =============================================================================
# Module fixtures
# =============================================================================


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def user_store(fake_redis):
    return UserStore(fake_redis)


@pytest.fixture
def reading_store(fake_redis):
    return ReadingStore(fake_redis, scan_batch_size=2)


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def authenticator(user_store, hasher, fake_redis):
    return Authenticator(user_store, hasher, redis_client=fake_redis)


# =============================================================================
# FastAPI client
# =============================================================================


@pytest.fixture
def app(fake_redis):
    return create_app(config_provider=StaticConfigProvider(), redis_client=fake_redis)


@pytest.fixture
def client(app):
    """Test client with the lifespan (module wiring) running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login_as(client, user_store):
    """
    Register a user through the API, give it a role and log it in.

    Usage:
        headers = login_as("t@test.com", Role.TEACHER)
        client.get("/users", headers=headers)
    """

    def _login(email: str, role: Role = Role.STUDENT, password: str = "abc123") -> Dict[str, str]:
        response = client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 200, response.text

        if role != Role.STUDENT:
            record = asyncio.run(user_store.find_by_email(email))
            asyncio.run(user_store.replace(record.id, record.model_copy(update={"role": role})))

        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"X-AUTH-KEY": response.json()["authenticationKey"]}

    return _login
