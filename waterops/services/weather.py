"""
Weather Data Service

Integration with Open-Meteo (snapshot job, no key) and OpenWeatherMap
(on-demand lookups, API key) for wind, temperature and cloud cover.
"""

import logging
import time
from datetime import datetime

import requests
from flask import current_app

from waterops.extensions import db
from waterops.models import SiteMap, WeatherSnapshot
from waterops.services.stability import classify

logger = logging.getLogger(__name__)

COMPASS_POINTS = ['N', 'NNE', 'NE', 'ENE', 'E', 'ESE', 'SE', 'SSE',
                  'S', 'SSW', 'SW', 'WSW', 'W', 'WNW', 'NW', 'NNW']


def wind_direction_text(degrees):
    """16-point compass label for a bearing in degrees."""
    return COMPASS_POINTS[int(round((degrees or 0) / 22.5)) % 16]


def fetch_current_weather(lat, lon):
    """Current conditions from Open-Meteo, or None when the request fails.

    Open-Meteo reports wind in km/h; the result is in m/s.
    """
    params = {
        'latitude': lat,
        'longitude': lon,
        'current': 'temperature_2m,wind_speed_10m,wind_direction_10m,cloud_cover',
        'timezone': 'UTC',
    }
    try:
        resp = requests.get(current_app.config['OPEN_METEO_BASE_URL'], params=params, timeout=6)
        if resp.status_code != 200:
            logger.error('Open-Meteo error %s for %s,%s', resp.status_code, lat, lon)
            return None
        current = resp.json().get('current', {})
        return {
            'wind_speed_mps': (current.get('wind_speed_10m') or 0) / 3.6,
            'wind_direction_deg': current.get('wind_direction_10m') or 0,
            'temperature_c': current.get('temperature_2m') or 0,
            'cloud_cover_pct': current.get('cloud_cover'),
        }
    except requests.exceptions.Timeout:
        logger.error('Open-Meteo request timed out for %s,%s', lat, lon)
        return None
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error('Error fetching weather for %s,%s: %s', lat, lon, e)
        return None


def get_weather(lat, lon):
    """Current weather from OpenWeatherMap for the given coordinates."""
    api_key = current_app.config.get('OPENWEATHERMAP_API_KEY')
    if not api_key:
        return {'error': True, 'message': 'Weather API not configured'}

    params = {'lat': lat, 'lon': lon, 'appid': api_key, 'units': 'metric'}
    try:
        resp = requests.get(current_app.config['OPENWEATHER_URL'], params=params, timeout=5)
        if resp.status_code != 200:
            logger.error('OpenWeatherMap error %s: %s', resp.status_code, resp.text[:200])
            return {'error': True, 'message': f'Weather API error: {resp.status_code}'}

        data = resp.json()
        wind = data.get('wind', {})
        main = data.get('main', {})
        degrees = wind.get('deg', 0)
        return {
            'error': False,
            'wind_speed': wind.get('speed', 0),
            'wind_direction': degrees,
            'wind_direction_text': wind_direction_text(degrees),
            'temperature': main.get('temp', 0),
            'humidity': main.get('humidity', 0),
            'pressure': main.get('pressure', 0),
            'weather_description': (data.get('weather') or [{}])[0].get('description', 'Unknown'),
            'fetched_at': datetime.utcnow().isoformat(),
        }
    except requests.exceptions.Timeout:
        return {'error': True, 'message': 'Request timed out'}
    except (requests.exceptions.RequestException, ValueError) as e:
        return {'error': True, 'message': str(e)}


def sites_with_coordinates():
    """(site_id, latitude, longitude) from the first geo-referenced map of each site."""
    maps = SiteMap.query.filter(
        SiteMap.latitude.isnot(None),
        SiteMap.longitude.isnot(None),
    ).order_by(SiteMap.id).all()

    seen = {}
    for site_map in maps:
        if site_map.site_id not in seen:
            seen[site_map.site_id] = (site_map.site_id, site_map.latitude, site_map.longitude)
    return list(seen.values())


def fetch_weather_snapshots(fetcher=None):
    """Fetch weather for every site with coordinates and store a snapshot.

    Sites are processed one at a time with ``WEATHER_FETCH_DELAY`` seconds
    between requests. A site whose fetch fails is skipped.
    """
    fetcher = fetcher or fetch_current_weather
    delay = current_app.config.get('WEATHER_FETCH_DELAY', 0.2)
    sites = sites_with_coordinates()
    if not sites:
        logger.info('No sites with coordinates found')
        return {'message': 'No sites with coordinates found', 'snapshots_created': 0}

    logger.info('Found %d sites with coordinates', len(sites))
    recorded_at = datetime.utcnow()
    snapshots = []
    skipped = []
    for index, (site_id, lat, lon) in enumerate(sites):
        if index and delay:
            time.sleep(delay)
        weather = fetcher(lat, lon)
        if not weather:
            logger.warning('Skipping site %s: weather fetch failed', site_id)
            skipped.append(site_id)
            continue

        derived = classify(lat, lon, recorded_at, weather['wind_speed_mps'],
                           weather.get('cloud_cover_pct'))
        snapshots.append(WeatherSnapshot(
            site_id=site_id,
            recorded_at=recorded_at,
            wind_speed_mps=round(weather['wind_speed_mps'], 2),
            wind_direction_deg=weather['wind_direction_deg'],
            temperature_c=weather['temperature_c'],
            cloud_cover_pct=weather.get('cloud_cover_pct'),
            solar_elevation_deg=derived['solar_elevation_deg'],
            stability_class=derived['stability_class'],
        ))

    if not snapshots:
        return {'message': 'Failed to fetch weather data', 'snapshots_created': 0,
                'skipped_sites': skipped}

    db.session.add_all(snapshots)
    db.session.commit()
    logger.info('Created %d weather snapshots', len(snapshots))
    return {
        'message': 'Weather snapshots created successfully',
        'snapshots_created': len(snapshots),
        'skipped_sites': skipped,
        'recorded_at': recorded_at.isoformat(),
    }


def latest_snapshot(site_id):
    return WeatherSnapshot.query.filter_by(site_id=site_id)\
        .order_by(WeatherSnapshot.recorded_at.desc()).first()


def recent_snapshots(site_id, limit=48):
    return WeatherSnapshot.query.filter_by(site_id=site_id)\
        .order_by(WeatherSnapshot.recorded_at.desc()).limit(limit).all()
