"""
Storage Module - Black Box Interface

Purpose: Own the document store connection
Interface: connect(), disconnect()
Hidden: Redis specifics, connection pooling, decoding

The user and reading stores receive the client returned by connect().
"""

import logging
from typing import Optional

import redis.asyncio as redis

from weather_api.config.provider import StoreConfig

logger = logging.getLogger(__name__)


class StorageModule:
    """Black box storage connection."""

    def __init__(self, config: StoreConfig):
        """Initialize storage with the store configuration."""
        self.url = config.url
        self.password = config.password
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> redis.Redis:
        """Get storage connection, creating it on first use."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                password=self.password,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Document store client created")
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Document store client closed")


__all__ = ["StorageModule"]
