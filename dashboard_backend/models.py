#file: dashboard_backend/models.py

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

SYNTHETIC_DESCRIPTION = "True when the value was produced by the fallback generator"


class Station(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Numeric station identifier assigned by the provider")
    name: str = Field(..., description="Station name")
    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    county: str = Field(..., description="Administrative region")
    city: Optional[str] = Field(None, description="City, when the provider reports one")
    synthetic: bool = Field(False, exclude=True, description=SYNTHETIC_DESCRIPTION)


class PollutantReading(BaseModel):
    """Concentrations for one station; a pollutant the provider did not report is 0.0."""
    model_config = ConfigDict(frozen=True)

    pm25: float = Field(0.0, ge=0, description="PM2.5 concentration (µg/m³)")
    pm10: float = Field(0.0, ge=0, description="PM10 concentration (µg/m³)")
    no2: float = Field(0.0, ge=0, description="NO2 concentration (µg/m³)")
    o3: float = Field(0.0, ge=0, description="O3 concentration (µg/m³)")
    so2: float = Field(0.0, ge=0, description="SO2 concentration (µg/m³)")
    co: float = Field(0.0, ge=0, description="CO concentration (mg/m³)")
    synthetic: bool = Field(False, exclude=True, description=SYNTHETIC_DESCRIPTION)


class AirQualitySample(BaseModel):
    model_config = ConfigDict(frozen=True)

    station_id: int = Field(..., description="Identifier of the station the reading belongs to")
    station_name: str = Field(..., description="Name of the station the reading belongs to")
    timestamp: datetime = Field(..., description="Time of the reading (UTC)")
    measurements: PollutantReading
    index: int = Field(..., ge=0, le=300, description="Air quality index computed from measurements")


class WeatherSample(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Observation or forecast time (UTC)")
    temperature: float = Field(..., description="Air temperature (°C)")
    humidity: float = Field(..., ge=0, le=100, description="Relative humidity (%)")
    wind_speed: float = Field(..., ge=0, description="Wind speed (km/h)")
    pressure: float = Field(..., ge=0, description="Surface pressure (hPa)")
    uv_index: float = Field(0.0, ge=0, description="UV index")
    synthetic: bool = Field(False, exclude=True, description=SYNTHETIC_DESCRIPTION)


class WeatherReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    current: WeatherSample
    hourly: List[WeatherSample]


class HistoricalPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = Field(..., description="Day in YYYY-MM-DD format")
    index: int = Field(0, ge=0, le=300, description="Air quality index for the day")
    pm25: float = Field(0.0, ge=0, description="PM2.5 concentration (µg/m³)")
    pm10: float = Field(0.0, ge=0, description="PM10 concentration (µg/m³)")
    temperature: Optional[float] = Field(None, description="Mean temperature for the day (°C)")
    synthetic: bool = Field(False, exclude=True, description=SYNTHETIC_DESCRIPTION)


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str
    message: str


class SeverityBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Stable band identifier, e.g. 'moderate'")
    label: str = Field(..., description="Human-readable band name")
    color: str = Field(..., description="Display colour as a hex string")
    upper_bound: Optional[int] = Field(None, description="Highest index in the band; None for the open top band")


class Snapshot(BaseModel):
    """One complete aggregation result; every field is populated from live or fallback data."""
    model_config = ConfigDict(frozen=True)

    cycle_id: int = Field(..., ge=0, description="Aggregation cycle that produced this snapshot")
    air_quality: List[AirQualitySample]
    weather: WeatherReport
    historical: List[HistoricalPoint]
    stations: List[Station]
    average_index: float = Field(..., ge=0, description="Mean index across all stations (0 when none)")
    alerts: List[Alert]
    last_updated: datetime = Field(..., description="Snapshot construction time (UTC)")


class SnapshotNotice(BaseModel):
    type: str = "snapshot_replaced"
    cycle_id: int
    last_updated: datetime


class ProviderStatus(BaseModel):
    provider: str
    failures: int = 0
    last_error: Optional[str] = None
    last_failure_at: Optional[datetime] = None
