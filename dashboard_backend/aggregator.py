# file: dashboard_backend/aggregator.py

import asyncio
import logging
from datetime import date, datetime
from typing import Callable, Dict, List

from dashboard_backend.aqi import compute_index
from dashboard_backend.config import AlertRule, Settings
from dashboard_backend.errors import AggregationFailed
from dashboard_backend.fallback import FallbackGenerator
from dashboard_backend.models import (Alert, AirQualitySample, HistoricalPoint, PollutantReading, Snapshot, Station,
                                      WeatherReport, WeatherSample)
from dashboard_backend.providers import AirQualityProvider, Failure, Success, WeatherProvider
from dashboard_backend.utils import lookback_window, utc_now


def average_index(samples: List[AirQualitySample]) -> float:
    if not samples:
        return 0.0
    return sum(sample.index for sample in samples) / len(samples)


def active_alerts(mean_index: float, rules: List[AlertRule]) -> List[Alert]:
    """Every configured rule whose threshold the mean index exceeds."""
    return [Alert(level=rule.level, message=rule.message) for rule in rules if mean_index > rule.threshold]


def merge_temperatures(points: List[HistoricalPoint], climate: List[HistoricalPoint]) -> List[HistoricalPoint]:
    """Attach the daily temperature from the climate history to the air-quality history, matched by date."""
    temperatures = {point.date: point.temperature for point in climate if point.temperature is not None}
    return [
        point.model_copy(update={"temperature": temperatures.get(point.date, point.temperature)})
        for point in points
    ]


class Aggregator:
    """Builds one complete Snapshot from both providers, substituting fallback data per failed quantity."""

    def __init__(self, air_quality: AirQualityProvider, weather: WeatherProvider, fallback: FallbackGenerator,
                 settings: Settings, clock: Callable[[], datetime] = utc_now):
        self.air_quality = air_quality
        self.weather = weather
        self.fallback = fallback
        self.settings = settings
        self.clock = clock

    async def _stations(self) -> List[Station]:
        match await self.air_quality.list_stations():
            case Success(value=stations) if stations:
                return stations
            case Success():
                logging.warning("No stations in the target region, using reference stations")
                return self.fallback.stations()
            case Failure(error=error):
                logging.info(f"Station list unavailable ({error.reason}), using reference stations")
                return self.fallback.stations()

    async def _readings(self, stations_task: "asyncio.Future[List[Station]]") -> Dict[int, PollutantReading]:
        stations = await stations_task
        if not stations:
            return {}
        readings = await self.air_quality.current_readings([station.id for station in stations])
        missing = [station for station in stations if station.id not in readings]
        if missing:
            logging.info(f"Using fallback readings for {len(missing)} of {len(stations)} station(s)")
        return {**readings, **self.fallback.readings(missing)}

    async def _current_weather(self, now: datetime) -> WeatherSample:
        match await self.weather.current_weather():
            case Success(value=sample):
                return sample
            case Failure():
                return self.fallback.current_weather(now)

    async def _hourly_forecast(self, now: datetime) -> List[WeatherSample]:
        match await self.weather.hourly_forecast():
            case Success(value=samples) if samples:
                return samples
            case _:
                return self.fallback.hourly_forecast(now)

    async def _air_quality_history(self, stations_task: "asyncio.Future[List[Station]]", now: datetime,
                                   start: date, end: date) -> List[HistoricalPoint]:
        stations = await stations_task
        if not stations:
            return self.fallback.air_quality_history(now, self.settings.lookback_days)
        match await self.air_quality.historical(stations[0].id, start, end):
            case Success(value=points) if points:
                return points
            case _:
                return self.fallback.air_quality_history(now, self.settings.lookback_days)

    async def _climate_history(self, now: datetime, start: date, end: date) -> List[HistoricalPoint]:
        match await self.weather.historical(start, end):
            case Success(value=points) if points:
                return points
            case _:
                return self.fallback.climate_history(now, self.settings.lookback_days)

    def _merge(self, cycle_id: int, stations: List[Station], readings: Dict[int, PollutantReading],
               current: WeatherSample, hourly: List[WeatherSample], history: List[HistoricalPoint],
               climate: List[HistoricalPoint], now: datetime) -> Snapshot:
        unread = [station.id for station in stations if station.id not in readings]
        if unread:
            raise AggregationFailed(f"No reading for station(s) {unread}")
        samples = [
            AirQualitySample(
                station_id=station.id,
                station_name=station.name,
                timestamp=now,
                measurements=readings[station.id],
                index=compute_index(readings[station.id]),
            )
            for station in stations
        ]
        mean_index = average_index(samples)
        return Snapshot(
            cycle_id=cycle_id,
            air_quality=samples,
            weather=WeatherReport(current=current, hourly=hourly),
            historical=merge_temperatures(history, climate),
            stations=stations,
            average_index=mean_index,
            alerts=active_alerts(mean_index, self.settings.alert_rules),
            last_updated=self.clock(),
        )

    async def build_snapshot(self, cycle_id: int = 0) -> Snapshot:
        """Fetch everything concurrently, wait for all calls to settle, and merge into one Snapshot.

        Upstream failures never fail the build; they are replaced by fallback data.
        Any other error is raised as AggregationFailed.
        """
        now = self.clock()
        start, end = lookback_window(now, self.settings.lookback_days)
        stations_task = asyncio.ensure_future(self._stations())
        tasks = [
            stations_task,
            asyncio.ensure_future(self._readings(stations_task)),
            asyncio.ensure_future(self._current_weather(now)),
            asyncio.ensure_future(self._hourly_forecast(now)),
            asyncio.ensure_future(self._air_quality_history(stations_task, now, start, end)),
            asyncio.ensure_future(self._climate_history(now, start, end)),
        ]
        try:
            stations, readings, current, hourly, history, climate = await asyncio.gather(*tasks)
            snapshot = self._merge(cycle_id, stations, readings, current, hourly, history, climate, now)
        except AggregationFailed:
            raise
        except Exception as e:
            raise AggregationFailed(f"Cycle {cycle_id} failed: {type(e).__name__}: {e}") from e
        finally:
            # a failed cycle must not leave provider calls running
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        logging.info(f"Snapshot {cycle_id} built: {len(snapshot.stations)} station(s), "
                     f"average index {snapshot.average_index:.1f}, {len(snapshot.alerts)} alert(s)")
        return snapshot
