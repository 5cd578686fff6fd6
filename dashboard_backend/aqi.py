# file: dashboard_backend/aqi.py

from typing import Dict, List

from dashboard_backend.models import PollutantReading, SeverityBand

MAX_SUB_INDEX = 300

# Concentration that maps to a sub-index of 100 for each regulated pollutant (µg/m³).
REFERENCE_THRESHOLDS = {
    "pm25": 35.4,
    "pm10": 154.0,
    "no2": 100.0,
}

SEVERITY_BANDS: List[SeverityBand] = [
    SeverityBand(key="good", label="Good", color="#4ade80", upper_bound=50),
    SeverityBand(key="moderate", label="Moderate", color="#facc15", upper_bound=100),
    SeverityBand(key="unhealthy_sensitive", label="Unhealthy for sensitive groups", color="#fb923c", upper_bound=150),
    SeverityBand(key="unhealthy", label="Unhealthy", color="#ef4444", upper_bound=200),
    SeverityBand(key="very_unhealthy", label="Very unhealthy", color="#991b1b", upper_bound=None),
]


def sub_indices(reading: PollutantReading) -> Dict[str, float]:
    """Scale each regulated pollutant against its reference threshold, capped at MAX_SUB_INDEX."""
    result = {}
    for pollutant, reference in REFERENCE_THRESHOLDS.items():
        concentration = getattr(reading, pollutant)
        result[pollutant] = min(concentration / reference * 100, MAX_SUB_INDEX) if concentration > 0 else 0.0
    return result


def compute_index(reading: PollutantReading) -> int:
    """Index driven by the worst pollutant: the maximum sub-index, rounded."""
    return round(max(sub_indices(reading).values()))


def severity_band(index: float) -> SeverityBand:
    for band in SEVERITY_BANDS:
        if band.upper_bound is not None and index <= band.upper_bound:
            return band
    return SEVERITY_BANDS[-1]
