import pytest

from dashboard_backend.aqi import MAX_SUB_INDEX, compute_index, severity_band, sub_indices
from dashboard_backend.models import PollutantReading


def test_all_zero_reading_has_zero_index():
    assert compute_index(PollutantReading()) == 0


@pytest.mark.parametrize("fields, expected", [
    ({"pm25": 35.4}, 100),
    ({"pm10": 154.0}, 100),
    ({"no2": 50.0}, 50),
    ({"pm25": 70.8, "no2": 50.0}, 200),
    ({"pm25": 10.0, "pm10": 308.0, "no2": 20.0}, 200),
])
def test_index_is_worst_sub_index(fields, expected):
    assert compute_index(PollutantReading(**fields)) == expected


def test_sub_indices_are_capped():
    reading = PollutantReading(pm25=1000.0, pm10=5000.0, no2=999.0)
    assert all(value == MAX_SUB_INDEX for value in sub_indices(reading).values())
    assert compute_index(reading) == 300


def test_unregulated_pollutants_do_not_drive_the_index():
    assert compute_index(PollutantReading(o3=500.0, so2=300.0, co=40.0)) == 0


def test_index_is_deterministic_and_bounded():
    readings = [
        PollutantReading(pm25=pm25, pm10=pm10, no2=no2)
        for pm25 in (0.0, 0.1, 12.0, 55.5, 250.0)
        for pm10 in (0.0, 80.0, 420.0)
        for no2 in (0.0, 99.9, 350.0)
    ]
    for reading in readings:
        index = compute_index(reading)
        assert index == compute_index(reading)
        assert 0 <= index <= 300
        assert index == round(max(sub_indices(reading).values()))


@pytest.mark.parametrize("index, key", [
    (0, "good"),
    (50, "good"),
    (51, "moderate"),
    (100, "moderate"),
    (100.5, "unhealthy_sensitive"),
    (150, "unhealthy_sensitive"),
    (200, "unhealthy"),
    (201, "very_unhealthy"),
    (300, "very_unhealthy"),
])
def test_severity_bands(index, key):
    assert severity_band(index).key == key
