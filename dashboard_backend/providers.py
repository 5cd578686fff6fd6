# file: dashboard_backend/providers.py

import asyncio
import logging
import ssl
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Generic, List, Optional, Protocol, TypeVar, Union

import aiohttp
import certifi
from pydantic import ValidationError

from dashboard_backend.errors import UpstreamUnavailable
from dashboard_backend.health import ProviderHealth
from dashboard_backend.models import HistoricalPoint, PollutantReading, Station, WeatherSample

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    error: UpstreamUnavailable


Fetched = Union[Success[T], Failure]


class AirQualityProvider(Protocol):
    async def list_stations(self) -> Fetched[List[Station]]: ...

    async def current_readings(self, station_ids: List[int]) -> Dict[int, PollutantReading]: ...

    async def historical(self, station_id: int, start: date, end: date) -> Fetched[List[HistoricalPoint]]: ...


class WeatherProvider(Protocol):
    async def current_weather(self) -> Fetched[WeatherSample]: ...

    async def hourly_forecast(self) -> Fetched[List[WeatherSample]]: ...

    async def historical(self, start: date, end: date) -> Fetched[List[HistoricalPoint]]: ...


# Errors that mean "this provider call did not produce usable data".
UPSTREAM_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValidationError, ValueError, KeyError, TypeError,
                   AttributeError)


class HttpProvider:
    """Shared aiohttp plumbing: one session per provider, bounded by a per-call deadline."""

    name = "provider"

    def __init__(self, base_url: str, timeout: float, health: Optional[ProviderHealth] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.health = health or ProviderHealth()
        self._session = session
        self._owns_session = session is None

    def _auth(self) -> Optional[aiohttp.BasicAuth]:
        return None

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(ssl=ssl_context),
                timeout=self.timeout,
                headers=self._headers(),
                auth=self._auth(),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _get_json(self, operation: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document; every failure surfaces as UpstreamUnavailable."""
        try:
            async with self._get_session().get(f"{self.base_url}{path}", params=params,
                                               timeout=self.timeout) as response:
                if response.status != 200:
                    raise UpstreamUnavailable(self.name, operation, f"HTTP {response.status}")
                return await response.json(content_type=None)
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(self.name, operation, f"timed out after {self.timeout.total}s")
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(self.name, operation, f"{type(e).__name__}: {e}")
        except ValueError as e:
            raise UpstreamUnavailable(self.name, operation, f"invalid JSON: {e}")

    def _failure(self, operation: str, error: Exception) -> Failure:
        if not isinstance(error, UpstreamUnavailable):
            error = UpstreamUnavailable(self.name, operation, f"malformed response: {type(error).__name__}: {error}")
        self.health.record(error)
        return Failure(error)

    async def _fetch(self, operation: str, path: str, parse, params: Optional[Dict[str, Any]] = None) -> Fetched:
        """Fetch and parse one resource into a Success, or a Failure with the reason."""
        try:
            payload = await self._get_json(operation, path, params)
            return Success(parse(payload))
        except (UpstreamUnavailable, *UPSTREAM_ERRORS) as e:
            return self._failure(operation, e)


def expect_list(payload: Any) -> List[Any]:
    if not isinstance(payload, list):
        raise ValueError(f"expected a JSON list, got {type(payload).__name__}")
    return payload


def expect_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def concentration(data: Dict[str, Any], key: str) -> float:
    """Missing or null concentrations are reported as 0.0, as the provider does."""
    return float(data.get(key) or 0)


def log_summary(provider: str, operation: str, count: int) -> None:
    logging.info(f"{provider}.{operation}: {count} item(s)")
