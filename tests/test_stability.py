from datetime import datetime

import pytest

from waterops.services.stability import (
    solar_elevation, insolation_class, stability_class, classify, describe_stability,
)


def test_solar_elevation_equator_noon_and_midnight():
    assert solar_elevation(0.0, 0.0, datetime(2026, 3, 21, 12, 0)) > 85
    assert solar_elevation(0.0, 0.0, datetime(2026, 3, 21, 0, 0)) < -80


def test_solar_elevation_follows_longitude():
    # Noon UTC is early morning at 90W
    assert solar_elevation(0.0, -90.0, datetime(2026, 3, 21, 12, 0)) < 5


def test_insolation_class():
    assert insolation_class(-5) == 'night'
    assert insolation_class(0) == 'night'
    assert insolation_class(70) == 'strong'
    assert insolation_class(40) == 'moderate'
    assert insolation_class(20) == 'slight'


def test_insolation_steps_down_when_cloudy():
    assert insolation_class(70, cloud_cover=80) == 'moderate'
    assert insolation_class(40, cloud_cover=80) == 'slight'
    assert insolation_class(20, cloud_cover=80) == 'slight'
    assert insolation_class(70, cloud_cover=50) == 'strong'


@pytest.mark.parametrize('wind, insolation, cloud, expected', [
    (1.0, 'strong', None, 'A'),
    (1.5, 'strong', None, 'A'),
    (2.0, 'moderate', None, 'B'),
    (4.0, 'slight', None, 'C'),
    (5.5, 'slight', None, 'D'),
    (6.0, 'strong', None, 'D'),
    (6.0, 'slight', None, 'D'),
    (7.0, 'strong', None, 'D'),
    (1.0, 'night', 10, 'F'),
    (1.0, 'night', 80, 'E'),
    (4.0, 'night', 80, 'D'),
])
def test_stability_class_table(wind, insolation, cloud, expected):
    assert stability_class(wind, insolation, cloud) == expected


def test_stability_class_rejects_unknown_insolation():
    with pytest.raises(ValueError):
        stability_class(1.0, 'twilight')


def test_classify_night_observation():
    result = classify(0.0, 0.0, datetime(2026, 3, 21, 0, 0), 1.0, 10)
    assert result['insolation'] == 'night'
    assert result['stability_class'] == 'F'
    assert result['solar_elevation_deg'] < 0


def test_describe_stability():
    assert describe_stability('F')['label'] == 'Stable'
    assert describe_stability(None)['label'] == 'Unknown'
