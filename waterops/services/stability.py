"""
Atmospheric Stability Services

Pasquill-Gifford stability classification from solar elevation, cloud cover
and wind speed. Used by the weather snapshot job and the plume model.
"""

import math
from datetime import datetime

STABILITY_DESCRIPTIONS = {
    'A': ('Very Unstable', 'Strong convection; odour disperses quickly'),
    'B': ('Unstable', 'Good vertical mixing'),
    'C': ('Slightly Unstable', 'Moderate mixing'),
    'D': ('Neutral', 'Overcast or windy; average dispersion'),
    'E': ('Slightly Stable', 'Limited mixing; odour travels further'),
    'F': ('Stable', 'Calm clear night; odour stays concentrated near ground'),
}

# Lowering one step when the sky is mostly cloudy
_INSOLATION_STEP_DOWN = {'strong': 'moderate', 'moderate': 'slight', 'slight': 'slight'}

# Upper wind limit (m/s, exclusive) -> classes for strong, moderate, slight,
# clear night, cloudy night
_PG_TABLE = [
    (2.0, ('A', 'A', 'B', 'F', 'E')),
    (3.0, ('A', 'B', 'C', 'F', 'E')),
    (5.0, ('B', 'B', 'C', 'E', 'D')),
    (6.0, ('C', 'C', 'D', 'D', 'D')),
]
_HIGH_WIND_ROW = ('D', 'D', 'D', 'D', 'D')

CLOUDY_PCT = 50


def solar_elevation(latitude, longitude, when=None):
    """Approximate solar elevation angle in degrees.

    ``when`` is a naive UTC datetime. Uses Cooper's declination and an hour
    angle from local solar time (UTC plus longitude / 15).
    """
    when = when or datetime.utcnow()
    day_of_year = when.timetuple().tm_yday
    declination = 23.45 * math.sin(math.radians(360.0 / 365.0 * (284 + day_of_year)))

    utc_hours = when.hour + when.minute / 60.0 + when.second / 3600.0
    solar_time = utc_hours + longitude / 15.0
    hour_angle = 15.0 * (solar_time - 12.0)

    lat_r = math.radians(latitude)
    dec_r = math.radians(declination)
    sin_el = (math.sin(lat_r) * math.sin(dec_r)
              + math.cos(lat_r) * math.cos(dec_r) * math.cos(math.radians(hour_angle)))
    sin_el = max(-1.0, min(1.0, sin_el))
    return math.degrees(math.asin(sin_el))


def insolation_class(elevation, cloud_cover=None):
    """Bucket solar elevation into strong/moderate/slight/night."""
    if elevation <= 0:
        return 'night'
    if elevation > 60:
        insolation = 'strong'
    elif elevation > 35:
        insolation = 'moderate'
    else:
        insolation = 'slight'
    if cloud_cover is not None and cloud_cover > CLOUDY_PCT:
        insolation = _INSOLATION_STEP_DOWN[insolation]
    return insolation


def stability_class(wind_speed, insolation, cloud_cover=None):
    """Look up the Pasquill-Gifford class (A-F) for wind speed in m/s."""
    row = _HIGH_WIND_ROW
    for limit, classes in _PG_TABLE:
        if wind_speed < limit:
            row = classes
            break

    if insolation == 'strong':
        return row[0]
    if insolation == 'moderate':
        return row[1]
    if insolation == 'slight':
        return row[2]
    if insolation == 'night':
        cloudy = cloud_cover is not None and cloud_cover > CLOUDY_PCT
        return row[4] if cloudy else row[3]
    raise ValueError(f'Unknown insolation class: {insolation}')


def classify(latitude, longitude, when, wind_speed, cloud_cover=None):
    """Solar elevation, insolation and stability class for one observation."""
    elevation = solar_elevation(latitude, longitude, when)
    insolation = insolation_class(elevation, cloud_cover)
    return {
        'solar_elevation_deg': round(elevation, 2),
        'insolation': insolation,
        'stability_class': stability_class(wind_speed or 0.0, insolation, cloud_cover),
    }


def describe_stability(letter):
    label, description = STABILITY_DESCRIPTIONS.get(letter, ('Unknown', 'No stability data'))
    return {'class': letter, 'label': label, 'description': description}
