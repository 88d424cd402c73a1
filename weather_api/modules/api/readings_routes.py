"""
Weather reading endpoints.

Students and teachers read; sensors and teachers write; only teachers
modify or delete.
"""

from datetime import datetime
from typing import Dict, List

from fastapi import APIRouter, Depends

from weather_api.config.provider import ReadingsConfig
from weather_api.modules.api.dependencies import get_reading_store, store_operation
from weather_api.modules.api.models import (
    PrecipitationUpdate,
    ReadingCreate,
    Role,
    parse_timestamp,
    utc_now,
)
from weather_api.modules.auth import BadRequest, NotFound
from weather_api.modules.middleware import require_roles
from weather_api.modules.readings import ReadingStore

READERS = (Role.STUDENT, Role.TEACHER)
WRITERS = (Role.SENSOR, Role.TEACHER)
ADMINS = (Role.TEACHER,)


def _parse_path_timestamp(value: str, name: str) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError:
        raise BadRequest(f"Bad request: {name} must be an ISO 8601 date or datetime") from None


def create_readings_router(readings_config: ReadingsConfig) -> APIRouter:
    """
    Create the weather readings router.

    Args:
        readings_config: Allowed device names and the precipitation window

    Returns:
        FastAPI router mounted at /readings
    """
    router = APIRouter(prefix="/readings", tags=["Readings"])

    @router.get("", dependencies=[Depends(require_roles(*READERS))])
    async def list_readings(readings: ReadingStore = Depends(get_reading_store)) -> Dict:
        with store_operation("Failed to retrieve weather readings"):
            results = await readings.list_all()

        return {
            "status": 200,
            "message": "Successfully retrieved all weather readings",
            "readings": results,
        }

    @router.get(
        "/maxPrecipitation/{device_name}",
        dependencies=[Depends(require_roles(*READERS))],
    )
    async def max_precipitation(
        device_name: str,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        """Highest precipitation recorded by a station over the configured window."""
        allowed = readings_config.allowed_device_names
        if device_name not in allowed:
            raise BadRequest(f"Invalid device name. Allowed values are: {','.join(allowed)}")

        months = readings_config.precipitation_window_months
        with store_operation("Failed to retrieve max precipitation"):
            results = await readings.max_precipitation_recent(device_name, months)

        if not results:
            raise NotFound(f"No precipitation readings found in the last {months} months")

        return {
            "status": 200,
            "message": f"Successfully retrieved the max precipitation in the last {months} months",
            "readings": results,
        }

    @router.get(
        "/maxTemperature/{start_date}/{end_date}",
        dependencies=[Depends(require_roles(*READERS))],
    )
    async def max_temperature(
        start_date: str,
        end_date: str,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        """Highest temperature per station between two dates."""
        start = _parse_path_timestamp(start_date, "startDate")
        end = _parse_path_timestamp(end_date, "endDate")
        if start > end:
            raise BadRequest("Bad request: startDate must not be after endDate")

        with store_operation("Failed to retrieve max temperatures"):
            results = await readings.max_temperature_between(start, end)

        if not results:
            raise NotFound("No max temperatures found for the specified date range.")

        return {
            "status": 200,
            "message": "Max temperatures between dates retrieved successfully.",
            "maxTemperatures": results,
        }

    @router.get(
        "/specificReadings/{device_name}/{date_time}",
        dependencies=[Depends(require_roles(*READERS))],
    )
    async def specific_readings(
        device_name: str,
        date_time: str,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        """
        Temperature, pressure, solar radiation and precipitation of a station
        from its latest complete reading on or before date_time.
        """
        at = _parse_path_timestamp(date_time, "dateTime")

        with store_operation("Failed to retrieve readings for the specified station"):
            results = await readings.latest_complete_reading(device_name, at)

        if not results:
            raise NotFound("Failed to retrieve readings for the specified station")

        return {
            "status": 200,
            "message": "Successfully retrieved the readings for the specified station",
            "readings": results,
        }

    @router.get("/{reading_id}", dependencies=[Depends(require_roles(*READERS))])
    async def get_reading(
        reading_id: str,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        with store_operation("Failed to retrieve weather reading by ID"):
            reading = await readings.find_by_id(reading_id)

        if reading is None:
            raise NotFound("Weather reading could not be found")

        return {
            "status": 200,
            "message": "Successfully retrieved weather reading by ID",
            "reading": reading,
        }

    @router.post("", dependencies=[Depends(require_roles(*WRITERS))])
    async def create_reading(
        body: ReadingCreate,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        reading = body.to_reading(utc_now())
        with store_operation("Failed to create weather reading"):
            await readings.insert(reading)

        return {
            "status": 200,
            "message": "Successfully created weather reading.",
            "reading": reading,
        }

    @router.post("/createManyReadings", dependencies=[Depends(require_roles(*WRITERS))])
    async def create_many_readings(
        body: List[ReadingCreate],
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        if not body:
            raise BadRequest("Bad request: at least one reading is required")

        now = utc_now()
        batch = [item.to_reading(now) for item in body]
        with store_operation("Failed to create weather readings"):
            await readings.insert_many(batch)

        return {
            "status": 200,
            "message": "Successfully created weather readings.",
            "readings": batch,
        }

    @router.patch(
        "/updatePrecipitation/{reading_id}",
        dependencies=[Depends(require_roles(*ADMINS))],
    )
    async def update_precipitation(
        reading_id: str,
        body: PrecipitationUpdate,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        with store_operation("Failed to update precipitation value."):
            modified = await readings.update_precipitation(reading_id, body.precipitation)

        if modified != 1:
            raise NotFound("No reading found with the specified ID.")

        return {"status": 200, "message": "Successfully updated precipitation value"}

    @router.delete("/{reading_id}", dependencies=[Depends(require_roles(*ADMINS))])
    async def delete_reading(
        reading_id: str,
        readings: ReadingStore = Depends(get_reading_store),
    ) -> Dict:
        with store_operation("Failed to delete the weather reading"):
            deleted = await readings.delete(reading_id)

        if deleted == 0:
            raise NotFound("Weather reading was not found with that ID")

        return {"status": 200, "message": "Successfully removed the weather reading"}

    return router
