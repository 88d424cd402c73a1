"""Request-scoped access to the modules wired into app.state at startup."""

import logging
from contextlib import contextmanager

import redis.asyncio as redis
from fastapi import Request

from weather_api.modules.auth import Authenticator, ServiceUnavailable, StoreFailure
from weather_api.modules.readings import ReadingStore
from weather_api.modules.users import UserStore

logger = logging.getLogger(__name__)


def _from_state(request: Request, name: str):
    module = getattr(request.app.state, name, None)
    if module is None:
        raise ServiceUnavailable()
    return module


def get_authenticator(request: Request) -> Authenticator:
    return _from_state(request, "authenticator")


def get_user_store(request: Request) -> UserStore:
    return _from_state(request, "user_store")


def get_reading_store(request: Request) -> ReadingStore:
    return _from_state(request, "reading_store")


@contextmanager
def store_operation(message: str):
    """
    Convert store errors raised inside the block into StoreFailure.

    Args:
        message: Message returned to the client on failure
    """
    try:
        yield
    except redis.RedisError as e:
        logger.error(f"{message}: {e}")
        raise StoreFailure(message) from e
