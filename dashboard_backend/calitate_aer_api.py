# file: dashboard_backend/calitate_aer_api.py

import aiohttp
import asyncio
from datetime import date
from typing import Any, Dict, List, Optional

from dashboard_backend.aqi import compute_index
from dashboard_backend.config import Settings
from dashboard_backend.errors import UpstreamUnavailable
from dashboard_backend.health import ProviderHealth
from dashboard_backend.models import HistoricalPoint, PollutantReading, Station
from dashboard_backend.providers import (Fetched, HttpProvider, UPSTREAM_ERRORS, concentration, expect_list,
                                         expect_object, log_summary)
from dashboard_backend.utils import iso_date

POLLUTANTS = ["pm25", "pm10", "no2", "o3", "so2", "co"]


def parse_reading(data: Dict[str, Any]) -> PollutantReading:
    data = expect_object(data)
    return PollutantReading(**{pollutant: concentration(data, pollutant) for pollutant in POLLUTANTS})


def parse_station(data: Dict[str, Any]) -> Station:
    data = expect_object(data)
    return Station(
        id=int(data["id"]),
        name=data["name"],
        lat=float(data["latitude"]),
        lon=float(data["longitude"]),
        county=data.get("county") or "",
        city=data.get("city"),
    )


class CalitateAerClient(HttpProvider):
    """Air-quality provider: regional station list, current and historical measurements."""

    name = "calitate_aer"

    def __init__(self, settings: Settings, health: Optional[ProviderHealth] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        super().__init__(settings.calitate_aer_url, settings.calitate_aer_timeout, health, session)
        self.settings = settings

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        if self.settings.calitate_aer_username and self.settings.calitate_aer_password:
            return aiohttp.BasicAuth(self.settings.calitate_aer_username, self.settings.calitate_aer_password)
        return None

    def in_region(self, data: Dict[str, Any]) -> bool:
        """Case-insensitive match of county, city or name against the target region."""
        keyword = self.settings.region_keyword.lower()
        county = (data.get("county") or "").lower()
        if county == self.settings.region_county.lower():
            return True
        return any(keyword in (data.get(field) or "").lower() for field in ("county", "city", "name"))

    def _parse_stations(self, payload: List[Dict[str, Any]]) -> List[Station]:
        items = [expect_object(item) for item in expect_list(payload)]
        stations = [parse_station(item) for item in items if self.in_region(item)]
        log_summary(self.name, "list_stations", len(stations))
        return stations

    async def list_stations(self) -> Fetched[List[Station]]:
        return await self._fetch("list_stations", "/stations", self._parse_stations)

    async def fetch_reading(self, station_id: int) -> Optional[PollutantReading]:
        """Current reading for one station, or None when the call fails."""
        operation = f"current_readings[{station_id}]"
        try:
            data = await self._get_json(operation, f"/measurements/station/{station_id}/current")
            return parse_reading(data)
        except (UpstreamUnavailable, *UPSTREAM_ERRORS) as e:
            self._failure(operation, e)
            return None

    async def current_readings(self, station_ids: List[int]) -> Dict[int, PollutantReading]:
        """One concurrent call per station; failed stations are left out of the mapping."""
        readings = await asyncio.gather(*(self.fetch_reading(station_id) for station_id in station_ids),
                                        return_exceptions=True)
        result = {}
        for station_id, reading in zip(station_ids, readings):
            if isinstance(reading, PollutantReading):
                result[station_id] = reading
            elif isinstance(reading, Exception):
                self._failure(f"current_readings[{station_id}]", reading)
        log_summary(self.name, "current_readings", len(result))
        return result

    @staticmethod
    def _parse_history(payload: List[Dict[str, Any]]) -> List[HistoricalPoint]:
        points = []
        for item in expect_list(payload):
            reading = parse_reading(item)
            points.append(HistoricalPoint(
                date=item["date"][:10],
                index=compute_index(reading),
                pm25=reading.pm25,
                pm10=reading.pm10,
            ))
        return sorted(points, key=lambda point: point.date)

    async def historical(self, station_id: int, start: date, end: date) -> Fetched[List[HistoricalPoint]]:
        params = {"startDate": iso_date(start), "endDate": iso_date(end)}
        return await self._fetch("historical", f"/measurements/station/{station_id}/historical",
                                 self._parse_history, params)

