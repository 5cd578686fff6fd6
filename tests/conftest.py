import asyncio
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
import pytz

from dashboard_backend.config import Settings
from dashboard_backend.errors import UpstreamUnavailable
from dashboard_backend.models import (HistoricalPoint, PollutantReading, Snapshot, Station, WeatherReport,
                                      WeatherSample)
from dashboard_backend.providers import Failure, Success

NOW = datetime(2026, 1, 15, 13, 0, tzinfo=pytz.utc)


def fixed_clock() -> datetime:
    return NOW


def failure(provider: str, operation: str, reason: str = "HTTP 503") -> Failure:
    return Failure(UpstreamUnavailable(provider, operation, reason))


def make_stations(count: int = 5) -> List[Station]:
    return [
        Station(id=100 + i, name=f"Station {i}", lat=44.40 + i / 100, lon=26.10, county="BUCURESTI")
        for i in range(count)
    ]


def make_weather(timestamp: datetime = NOW, temperature: float = 21.5) -> WeatherSample:
    return WeatherSample(timestamp=timestamp, temperature=temperature, humidity=55, wind_speed=7.2,
                         pressure=1016, uv_index=3)


def make_hourly(start: datetime = NOW, hours: int = 24) -> List[WeatherSample]:
    return [make_weather(start + timedelta(hours=i), temperature=15 + i / 2) for i in range(hours)]


def make_history(days: int = 3, end: datetime = NOW, **fields) -> List[HistoricalPoint]:
    return [
        HistoricalPoint(date=(end - timedelta(days=days - 1 - i)).strftime("%Y-%m-%d"), **fields)
        for i in range(days)
    ]


def make_snapshot(cycle_id: int) -> Snapshot:
    return Snapshot(
        cycle_id=cycle_id,
        air_quality=[],
        weather=WeatherReport(current=make_weather(), hourly=make_hourly()),
        historical=[],
        stations=[],
        average_index=0.0,
        alerts=[],
        last_updated=NOW,
    )


class FakeAirQuality:
    """Air-quality provider returning canned results."""

    def __init__(self, stations=None, readings: Optional[Dict[int, PollutantReading]] = None, history=None,
                 error: Optional[Exception] = None):
        self.stations = stations if stations is not None else Success(make_stations())
        self.readings = readings if readings is not None else {}
        self.history = history if history is not None else Success(make_history(index=40, pm25=14.0, pm10=30.0))
        self.error = error
        self.reading_requests: List[List[int]] = []
        self.history_requests: List[int] = []

    async def list_stations(self):
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.stations

    async def current_readings(self, station_ids: List[int]) -> Dict[int, PollutantReading]:
        await asyncio.sleep(0)
        self.reading_requests.append(list(station_ids))
        return {station_id: self.readings[station_id] for station_id in station_ids if station_id in self.readings}

    async def historical(self, station_id, start, end):
        await asyncio.sleep(0)
        self.history_requests.append(station_id)
        return self.history


class FakeWeather:
    """Weather provider returning canned results."""

    def __init__(self, current=None, hourly=None, history=None):
        self.current = current if current is not None else Success(make_weather())
        self.hourly = hourly if hourly is not None else Success(make_hourly())
        self.history = history if history is not None else Success(make_history(temperature=4.5))

    async def current_weather(self):
        await asyncio.sleep(0)
        return self.current

    async def hourly_forecast(self):
        await asyncio.sleep(0)
        return self.hourly

    async def historical(self, start, end):
        await asyncio.sleep(0)
        return self.history


def failing_air_quality() -> FakeAirQuality:
    return FakeAirQuality(
        stations=failure("calitate_aer", "list_stations"),
        readings={},
        history=failure("calitate_aer", "historical"),
    )


def failing_weather() -> FakeWeather:
    return FakeWeather(
        current=failure("copernicus", "current_weather", "timed out after 15.0s"),
        hourly=failure("copernicus", "hourly_forecast"),
        history=failure("copernicus", "historical"),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings()
