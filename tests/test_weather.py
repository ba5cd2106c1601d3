from datetime import datetime

import pytest
import requests

from waterops.extensions import db
from waterops.models import Site, SiteMap, WeatherSnapshot
from waterops.services.weather import (
    wind_direction_text, fetch_current_weather, fetch_weather_snapshots, get_weather, latest_snapshot,
)


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = ''

    def json(self):
        return self._payload


def add_map(site_id, lat, lon):
    site_map = SiteMap(site_id=site_id, name='Layout', storage_path=f'{site_id}/1.png',
                       latitude=lat, longitude=lon)
    db.session.add(site_map)
    db.session.commit()
    return site_map


def test_wind_direction_text():
    assert wind_direction_text(0) == 'N'
    assert wind_direction_text(90) == 'E'
    assert wind_direction_text(200) == 'SSW'
    assert wind_direction_text(355) == 'N'
    assert wind_direction_text(None) == 'N'


def test_fetch_current_weather_converts_kmh(app, monkeypatch):
    payload = {'current': {'wind_speed_10m': 18.0, 'wind_direction_10m': 270,
                           'temperature_2m': 12.5, 'cloud_cover': 40}}
    monkeypatch.setattr(requests, 'get', lambda *a, **kw: FakeResponse(200, payload))

    weather = fetch_current_weather(51.5, -0.1)
    assert weather['wind_speed_mps'] == pytest.approx(5.0)
    assert weather['wind_direction_deg'] == 270
    assert weather['cloud_cover_pct'] == 40


def test_fetch_current_weather_failure_returns_none(app, monkeypatch):
    monkeypatch.setattr(requests, 'get', lambda *a, **kw: FakeResponse(500))
    assert fetch_current_weather(51.5, -0.1) is None


def test_snapshot_job_skips_failed_sites(app, site):
    north = Site(name='North Plant')
    db.session.add(north)
    db.session.commit()
    add_map(site.id, 51.5, -0.1)
    add_map(site.id, 10.0, 10.0)  # second map of the same site is ignored
    add_map(north.id, 53.4, -2.2)

    def fetcher(lat, lon):
        if lat == 53.4:
            return None
        return {'wind_speed_mps': 1.0, 'wind_direction_deg': 180,
                'temperature_c': 9.0, 'cloud_cover_pct': 90}

    result = fetch_weather_snapshots(fetcher)
    assert result['snapshots_created'] == 1
    assert result['skipped_sites'] == [north.id]

    snapshot = latest_snapshot(site.id)
    assert snapshot.wind_direction_deg == 180
    assert snapshot.stability_class in 'ABCDEF'
    assert snapshot.solar_elevation_deg is not None
    assert latest_snapshot(north.id) is None


def test_snapshot_job_paces_requests_between_sites(app, site, monkeypatch):
    app.config['WEATHER_FETCH_DELAY'] = 0.2
    for name in ('North Plant', 'East Plant'):
        other = Site(name=name)
        db.session.add(other)
        db.session.commit()
        add_map(other.id, 52.0, -1.0)
    add_map(site.id, 51.5, -0.1)

    sleeps = []
    monkeypatch.setattr('waterops.services.weather.time.sleep', sleeps.append)
    weather = {'wind_speed_mps': 3.0, 'wind_direction_deg': 90,
               'temperature_c': 10.0, 'cloud_cover_pct': 20}

    result = fetch_weather_snapshots(lambda lat, lon: weather)
    assert result['snapshots_created'] == 3
    assert sleeps == [0.2, 0.2]


def test_snapshot_job_without_coordinates(app):
    result = fetch_weather_snapshots(lambda lat, lon: None)
    assert result['snapshots_created'] == 0
    assert WeatherSnapshot.query.count() == 0


def test_get_weather(app, monkeypatch):
    payload = {'wind': {'speed': 3.2, 'deg': 45}, 'main': {'temp': 14, 'humidity': 70, 'pressure': 1012},
               'weather': [{'description': 'light rain'}]}
    monkeypatch.setattr(requests, 'get', lambda *a, **kw: FakeResponse(200, payload))

    weather = get_weather(51.5, -0.1)
    assert weather['error'] is False
    assert weather['wind_direction_text'] == 'NE'
    assert weather['weather_description'] == 'light rain'


def test_get_weather_not_configured(app):
    app.config['OPENWEATHERMAP_API_KEY'] = None
    assert get_weather(51.5, -0.1) == {'error': True, 'message': 'Weather API not configured'}


def test_weather_endpoints(logged_in, site, monkeypatch):
    r = logged_in.get('/environment/weather/latest')
    assert r.status_code == 404

    db.session.add(WeatherSnapshot(site_id=site.id, recorded_at=datetime(2026, 3, 10, 12),
                                   wind_speed_mps=2.0, wind_direction_deg=90, stability_class='C'))
    db.session.commit()
    r = logged_in.get('/environment/weather/latest')
    assert r.get_json()['stability_class'] == 'C'

    monkeypatch.setattr(requests, 'get', lambda *a, **kw: FakeResponse(503))
    r = logged_in.post('/functions/get-weather', json={'latitude': 51.5, 'longitude': -0.1})
    assert r.status_code == 502
