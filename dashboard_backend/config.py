# file: dashboard_backend/config.py

import os
import json
import logging
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from typing import List, Optional

load_dotenv()

DEFAULT_ALERT_RULES = [
    {
        "threshold": 100,
        "level": "sensitive_groups",
        "message": "Air quality is unhealthy for sensitive groups. Limiting outdoor activity is recommended."
    }
]


class AlertRule(BaseModel):
    threshold: float = Field(..., ge=0, description="Alert fires when the mean index is strictly above this value")
    level: str = Field(..., description="Machine-readable alert level")
    message: str = Field(..., description="Advisory text shown to the user")


class ReferenceStation(BaseModel):
    id: int
    name: str
    lat: float
    lon: float


DEFAULT_REFERENCE_STATIONS = [
    ReferenceStation(id=1, name="Calea Plevnei", lat=44.4378, lon=26.0875),
    ReferenceStation(id=2, name="Drumul Taberei", lat=44.4247, lon=26.0301),
    ReferenceStation(id=3, name="Berceni", lat=44.3876, lon=26.1186),
    ReferenceStation(id=4, name="Titan", lat=44.4334, lon=26.1496),
    ReferenceStation(id=5, name="Ambasada", lat=44.4601, lon=26.0844),
]


class Settings(BaseModel):
    calitate_aer_url: str = "https://calitateaer.ro:8443"
    calitate_aer_username: Optional[str] = None
    calitate_aer_password: Optional[str] = None
    calitate_aer_timeout: float = 10.0

    copernicus_url: str = "http://localhost:8080/api/copernicus"
    copernicus_api_key: Optional[str] = None
    copernicus_timeout: float = 15.0

    region_keyword: str = "bucuresti"
    region_county: str = "BUCURESTI"
    region_lat: float = 44.4268
    region_lon: float = 26.1025
    region_timezone: str = "Europe/Bucharest"
    reference_stations: List[ReferenceStation] = Field(default_factory=lambda: list(DEFAULT_REFERENCE_STATIONS))

    lookback_days: int = Field(30, ge=0)
    forecast_hours: int = Field(24, gt=0)
    refresh_interval_seconds: int = Field(300, gt=0)
    alert_rules: List[AlertRule] = Field(default_factory=lambda: [AlertRule(**rule) for rule in DEFAULT_ALERT_RULES])


def _load_alert_rules(raw: Optional[str]) -> List[AlertRule]:
    """Parse ALERT_RULES (a JSON list of rules); the default advisory is used when unset or invalid."""
    if not raw:
        return [AlertRule(**rule) for rule in DEFAULT_ALERT_RULES]
    try:
        return [AlertRule(**rule) for rule in json.loads(raw)]
    except (ValueError, TypeError) as e:
        logging.error(f"Invalid ALERT_RULES configuration, using defaults: {e}")
        return [AlertRule(**rule) for rule in DEFAULT_ALERT_RULES]


def load_settings() -> Settings:
    """Build settings from the environment (and .env file, if present)."""
    defaults = Settings()
    return Settings(
        calitate_aer_url=os.getenv("CALITATE_AER_URL", defaults.calitate_aer_url),
        calitate_aer_username=os.getenv("CALITATE_AER_USERNAME") or None,
        calitate_aer_password=os.getenv("CALITATE_AER_PASSWORD") or None,
        calitate_aer_timeout=float(os.getenv("CALITATE_AER_TIMEOUT", defaults.calitate_aer_timeout)),
        copernicus_url=os.getenv("COPERNICUS_URL", defaults.copernicus_url),
        copernicus_api_key=os.getenv("COPERNICUS_API_KEY") or None,
        copernicus_timeout=float(os.getenv("COPERNICUS_TIMEOUT", defaults.copernicus_timeout)),
        region_keyword=os.getenv("REGION_KEYWORD", defaults.region_keyword),
        region_county=os.getenv("REGION_COUNTY", defaults.region_county),
        region_lat=float(os.getenv("REGION_LAT", defaults.region_lat)),
        region_lon=float(os.getenv("REGION_LON", defaults.region_lon)),
        region_timezone=os.getenv("REGION_TIMEZONE", defaults.region_timezone),
        lookback_days=int(os.getenv("LOOKBACK_DAYS", defaults.lookback_days)),
        forecast_hours=int(os.getenv("FORECAST_HOURS", defaults.forecast_hours)),
        refresh_interval_seconds=int(os.getenv("REFRESH_INTERVAL_SECONDS", defaults.refresh_interval_seconds)),
        alert_rules=_load_alert_rules(os.getenv("ALERT_RULES")),
    )
