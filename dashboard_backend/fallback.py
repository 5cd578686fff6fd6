# file: dashboard_backend/fallback.py

import math
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from dashboard_backend.aqi import compute_index
from dashboard_backend.config import Settings
from dashboard_backend.models import HistoricalPoint, PollutantReading, Station, WeatherSample
from dashboard_backend.utils import iso_date, local_time

# (low, high) bounds of the synthetic concentrations per pollutant.
READING_RANGES = {
    "pm25": (10.0, 60.0),
    "pm10": (20.0, 100.0),
    "no2": (15.0, 75.0),
    "o3": (30.0, 150.0),
    "so2": (5.0, 35.0),
    "co": (2.0, 12.0),
}


class FallbackGenerator:
    """Synthetic data with the same shape as live provider data.

    Values follow a seasonal and diurnal curve for the region's local time with
    bounded random jitter. They are plausible, not representative. Every value
    produced here is marked ``synthetic=True``.
    """

    def __init__(self, settings: Settings, rng: Optional[random.Random] = None):
        self.settings = settings
        self.rng = rng or random.Random()

    def _jitter(self, spread: float) -> float:
        return self.rng.uniform(0, spread)

    def _diurnal(self, moment: datetime) -> float:
        """Between -1 and 1, peaking mid-afternoon in local time."""
        local = local_time(moment, self.settings.region_timezone)
        hour = local.hour + local.minute / 60
        return math.sin((hour - 9) * math.pi / 12)

    def _seasonal_mean(self, moment: datetime) -> float:
        day_of_year = local_time(moment, self.settings.region_timezone).timetuple().tm_yday
        return 12 - 11 * math.cos(2 * math.pi * (day_of_year - 20) / 365)

    def stations(self) -> List[Station]:
        return [
            Station(id=station.id, name=station.name, lat=station.lat, lon=station.lon,
                    county=self.settings.region_county, synthetic=True)
            for station in self.settings.reference_stations
        ]

    def reading(self) -> PollutantReading:
        return PollutantReading(
            **{pollutant: round(self.rng.uniform(low, high), 1) for pollutant, (low, high) in READING_RANGES.items()},
            synthetic=True
        )

    def readings(self, stations: List[Station]) -> Dict[int, PollutantReading]:
        return {station.id: self.reading() for station in stations}

    def weather_at(self, moment: datetime) -> WeatherSample:
        diurnal = self._diurnal(moment)
        return WeatherSample(
            timestamp=moment,
            temperature=round(self._seasonal_mean(moment) + diurnal * 5 + self._jitter(2) - 1, 1),
            humidity=round(45 + self._jitter(30) - diurnal * 10, 1),
            wind_speed=round(5 + self._jitter(10), 1),
            pressure=round(1010 + self._jitter(20), 1),
            uv_index=round(max(0.0, diurnal * 8), 1),
            synthetic=True,
        )

    def current_weather(self, now: datetime) -> WeatherSample:
        return self.weather_at(now)

    def hourly_forecast(self, start: datetime, hours: Optional[int] = None) -> List[WeatherSample]:
        hours = self.settings.forecast_hours if hours is None else hours
        first = start.replace(minute=0, second=0, microsecond=0)
        return [self.weather_at(first + timedelta(hours=i)) for i in range(hours)]

    def _days(self, end: datetime, days: int) -> List[datetime]:
        return [end - timedelta(days=days - 1 - i) for i in range(days)]

    def air_quality_history(self, end: datetime, days: int) -> List[HistoricalPoint]:
        points = []
        for i, day in enumerate(self._days(end, days)):
            reading = PollutantReading(
                pm25=round(20 + math.sin(i * 0.3) * 15 + self._jitter(10), 1),
                pm10=round(35 + math.sin(i * 0.25) * 20 + self._jitter(15), 1),
                synthetic=True,
            )
            points.append(HistoricalPoint(date=iso_date(day.date()), index=compute_index(reading),
                                          pm25=reading.pm25, pm10=reading.pm10, synthetic=True))
        return points

    def climate_history(self, end: datetime, days: int) -> List[HistoricalPoint]:
        return [
            HistoricalPoint(date=iso_date(day.date()),
                            temperature=round(self._seasonal_mean(day) + self._jitter(5) - 2.5, 1),
                            synthetic=True)
            for day in self._days(end, days)
        ]
