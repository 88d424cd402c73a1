"""
Weather reading queries evaluated in-process.

The store hands back readings already narrowed by device and time range;
these functions do the grouping, maxima and projections.
"""

import calendar
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from weather_api.modules.api.models import WeatherReading

COMPLETE_FIELDS = ("temp_celsius", "atmospheric_pressure", "solar_radiation", "precipitation")


def months_before(moment: datetime, months: int) -> datetime:
    """Step back a number of calendar months, clamping the day to the target month."""
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def max_precipitation(readings: Iterable[WeatherReading]) -> List[dict]:
    """
    Find the reading with the highest precipitation.

    Returns:
        A list with at most one projected reading
    """
    best: Optional[WeatherReading] = None
    for reading in readings:
        if reading.precipitation is None:
            continue
        if best is None or reading.precipitation > best.precipitation:
            best = reading

    if best is None:
        return []
    return [
        {
            "device_name": best.device_name,
            "precipitation": best.precipitation,
            "date_time": best.date_time,
        }
    ]


def max_temperature_by_device(readings: Iterable[WeatherReading]) -> List[dict]:
    """
    Group readings by device and keep each device's highest temperature.

    Readings without a temperature do not contribute. date_time is the
    time of the reading that holds the maximum.
    """
    maxima: Dict[str, WeatherReading] = {}
    for reading in readings:
        if reading.temp_celsius is None:
            continue
        current = maxima.get(reading.device_name)
        if current is None or reading.temp_celsius > current.temp_celsius:
            maxima[reading.device_name] = reading

    return [
        {
            "device_name": device_name,
            "max_temperature": reading.temp_celsius,
            "date_time": reading.date_time,
        }
        for device_name, reading in sorted(maxima.items())
    ]


def is_complete(reading: WeatherReading) -> bool:
    return all(getattr(reading, name) is not None for name in COMPLETE_FIELDS)


def project_complete(reading: WeatherReading) -> dict:
    projected = {"device_name": reading.device_name, "date_time": reading.date_time}
    for name in COMPLETE_FIELDS:
        projected[name] = getattr(reading, name)
    return projected
