# file: dashboard_backend/copernicus_api.py

import aiohttp
from datetime import date
from typing import Any, Dict, List, Optional

from dashboard_backend.config import Settings
from dashboard_backend.health import ProviderHealth
from dashboard_backend.models import HistoricalPoint, WeatherSample
from dashboard_backend.providers import Fetched, HttpProvider, expect_list, expect_object, log_summary
from dashboard_backend.utils import iso_date, utc_now

CURRENT_VARIABLES = ["2m_temperature", "2m_relative_humidity", "10m_wind_speed", "surface_pressure"]


def parse_weather(data: Dict[str, Any], timestamp=None) -> WeatherSample:
    data = expect_object(data)
    return WeatherSample(
        timestamp=timestamp or data["time"],
        temperature=float(data["temperature"]),
        humidity=float(data["humidity"]),
        wind_speed=float(data["windSpeed"]),
        pressure=float(data["pressure"]),
        uv_index=float(data.get("uvIndex") or 0),
    )


class CopernicusClient(HttpProvider):
    """Weather provider for the fixed region coordinates: current, hourly forecast and daily history."""

    name = "copernicus"

    def __init__(self, settings: Settings, health: Optional[ProviderHealth] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        super().__init__(settings.copernicus_url, settings.copernicus_timeout, health, session)
        self.settings = settings

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.settings.copernicus_api_key:
            headers["Authorization"] = f"Bearer {self.settings.copernicus_api_key}"
        return headers

    def _location(self) -> Dict[str, Any]:
        return {"lat": self.settings.region_lat, "lon": self.settings.region_lon}

    async def current_weather(self) -> Fetched[WeatherSample]:
        params = {**self._location(), "variables": ",".join(CURRENT_VARIABLES)}
        return await self._fetch("current_weather", "/current-weather",
                                 lambda payload: parse_weather(payload, timestamp=utc_now()), params)

    def _parse_hourly(self, payload: List[Dict[str, Any]]) -> List[WeatherSample]:
        samples = sorted((parse_weather(item) for item in expect_list(payload)),
                         key=lambda sample: sample.timestamp)
        if len(samples) != self.settings.forecast_hours:
            raise ValueError(f"expected {self.settings.forecast_hours} hourly points, got {len(samples)}")
        log_summary(self.name, "hourly_forecast", len(samples))
        return samples

    async def hourly_forecast(self) -> Fetched[List[WeatherSample]]:
        params = {**self._location(), "hours": self.settings.forecast_hours}
        return await self._fetch("hourly_forecast", "/hourly-forecast", self._parse_hourly, params)

    @staticmethod
    def _parse_history(payload: List[Dict[str, Any]]) -> List[HistoricalPoint]:
        points = [
            HistoricalPoint(date=item["date"][:10], temperature=float(item["temperature"]))
            for item in map(expect_object, expect_list(payload))
        ]
        return sorted(points, key=lambda point: point.date)

    async def historical(self, start: date, end: date) -> Fetched[List[HistoricalPoint]]:
        params = {**self._location(), "startDate": iso_date(start), "endDate": iso_date(end)}
        return await self._fetch("historical", "/historical-climate", self._parse_history, params)
