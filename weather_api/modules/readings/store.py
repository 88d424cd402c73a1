import logging
from datetime import datetime
from typing import List, Optional

from weather_api.modules.api.models import WeatherReading, is_identifier, utc_now

from .aggregations import (
    is_complete,
    max_precipitation,
    max_temperature_by_device,
    months_before,
    project_complete,
)

logger = logging.getLogger(__name__)


class ReadingStore:
    def __init__(self, redis_client, scan_batch_size: int = 50):
        """
        Initialize the weather reading store.

        Args:
            redis_client: Async Redis client (decode_responses=True)
            scan_batch_size: Readings fetched per round trip when walking
                a device's history backwards

        Layout:
            reading:{id}                   -> WeatherReading JSON
            readings:all                   -> zset id -> date_time timestamp
            readings:device:{device_name}  -> zset id -> date_time timestamp
        """
        self.redis = redis_client
        self.scan_batch_size = scan_batch_size

    @staticmethod
    def _reading_key(reading_id: str) -> str:
        return f"reading:{reading_id}"

    @staticmethod
    def _device_key(device_name: str) -> str:
        return f"readings:device:{device_name}"

    async def _load_many(self, reading_ids: List[str]) -> List[WeatherReading]:
        if not reading_ids:
            return []
        documents = await self.redis.mget([self._reading_key(rid) for rid in reading_ids])
        return [WeatherReading.model_validate_json(doc) for doc in documents if doc]

    async def find_by_id(self, reading_id: str) -> Optional[WeatherReading]:
        if not is_identifier(reading_id):
            return None
        data = await self.redis.get(self._reading_key(reading_id))
        if data:
            return WeatherReading.model_validate_json(data)
        return None

    async def list_all(self) -> List[WeatherReading]:
        """Get all readings ordered by date_time."""
        reading_ids = await self.redis.zrange("readings:all", 0, -1)
        return await self._load_many(reading_ids)

    async def between(
        self, start: datetime, end: datetime, device_name: Optional[str] = None
    ) -> List[WeatherReading]:
        """Get readings recorded within [start, end], optionally for one device."""
        key = self._device_key(device_name) if device_name else "readings:all"
        reading_ids = await self.redis.zrangebyscore(key, start.timestamp(), end.timestamp())
        return await self._load_many(reading_ids)

    async def insert(self, reading: WeatherReading) -> str:
        score = reading.date_time.timestamp()
        await self.redis.set(self._reading_key(reading.id), reading.model_dump_json())
        await self.redis.zadd("readings:all", {reading.id: score})
        await self.redis.zadd(self._device_key(reading.device_name), {reading.id: score})
        return reading.id

    async def insert_many(self, readings: List[WeatherReading]) -> List[str]:
        inserted = []
        for reading in readings:
            inserted.append(await self.insert(reading))
        logger.info(f"Inserted {len(inserted)} weather readings")
        return inserted

    async def update_precipitation(self, reading_id: str, precipitation: float) -> int:
        """
        Set the precipitation value of a reading.

        Returns:
            Modified count; writing the value already stored counts as 0
        """
        reading = await self.find_by_id(reading_id)
        if reading is None or reading.precipitation == precipitation:
            return 0

        updated = reading.model_copy(update={"precipitation": precipitation})
        await self.redis.set(self._reading_key(reading_id), updated.model_dump_json())
        return 1

    async def delete(self, reading_id: str) -> int:
        reading = await self.find_by_id(reading_id)
        if reading is None:
            return 0

        deleted = await self.redis.delete(self._reading_key(reading_id))
        await self.redis.zrem("readings:all", reading_id)
        await self.redis.zrem(self._device_key(reading.device_name), reading_id)
        return deleted

    async def max_precipitation_recent(
        self, device_name: str, months: int, now: Optional[datetime] = None
    ) -> List[dict]:
        """Highest precipitation reading of a device over the last few months."""
        now = now or utc_now()
        readings = await self.between(months_before(now, months), now, device_name=device_name)
        return max_precipitation(readings)

    async def max_temperature_between(self, start: datetime, end: datetime) -> List[dict]:
        """Highest temperature per device within [start, end]."""
        readings = await self.between(start, end)
        return max_temperature_by_device(readings)

    async def latest_complete_reading(
        self, device_name: str, at: Optional[datetime] = None
    ) -> List[dict]:
        """
        Most recent reading of a device, on or before `at`, that carries
        temperature, pressure, solar radiation and precipitation.

        Walks the device's history newest first in batches so the common
        case touches only a handful of documents.
        """
        key = self._device_key(device_name)
        upper = at.timestamp() if at else "+inf"
        offset = 0

        while True:
            reading_ids = await self.redis.zrevrangebyscore(
                key, upper, "-inf", start=offset, num=self.scan_batch_size
            )
            if not reading_ids:
                return []

            for reading in await self._load_many(reading_ids):
                if is_complete(reading):
                    return [project_complete(reading)]

            offset += len(reading_ids)
