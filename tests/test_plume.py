import math
from datetime import datetime, timedelta

import pytest

from waterops.extensions import db
from waterops.models import OdourPrediction, OdourSource, WeatherSnapshot
from waterops.services.plume import (
    source_center, intensity_at_distance, generate_plume, generate_predictions, active_predictions,
    PlumeError, MODEL_VERSION,
)


def test_source_center():
    assert source_center({'type': 'point', 'x': 10, 'y': 20}) == (10, 20)
    square = {'type': 'polygon', 'coordinates': [
        {'x': 0, 'y': 0}, {'x': 10, 'y': 0}, {'x': 10, 'y': 10}, {'x': 0, 'y': 10},
    ]}
    assert source_center(square) == (5, 5)
    assert source_center({'type': 'polygon', 'coordinates': []}) is None
    assert source_center(None) is None


def test_intensity_decays_with_distance():
    assert intensity_at_distance(4, 0, 60) == 4
    assert intensity_at_distance(4, 60, 60) == pytest.approx(4 * math.exp(-1 / 0.6))
    assert intensity_at_distance(4, 10, 0) == 4


def test_plume_points_downwind():
    # Wind from the north carries odour south, which is +y on the map
    plume = generate_plume(50, 20, 0, 1.0, 60, 3, 'D')
    tip = plume['geometry'][13]
    assert tip['x'] == pytest.approx(50)
    assert tip['y'] == pytest.approx(80)
    assert plume['geometry'][0] == {'x': 50, 'y': 20}
    assert [c['level'] for c in plume['contours']] == ['high', 'medium', 'low']
    assert len(plume['intensity_profile']) == 11


def test_plume_is_clamped_to_map():
    plume = generate_plume(95, 50, 270, 5.0, 60, 3, 'A')
    assert all(0 <= p['x'] <= 100 and 0 <= p['y'] <= 100 for p in plume['geometry'])


def test_stable_air_gives_narrower_plume():
    def width(stability):
        xs = [p['x'] for p in generate_plume(50, 10, 0, 1.0, 60, 3, stability)['geometry']]
        return max(xs) - min(xs)

    assert width('F') < width('D') < width('A')


def add_snapshot(site_id, **overrides):
    values = dict(site_id=site_id, recorded_at=datetime.utcnow(), wind_speed_mps=2.0,
                  wind_direction_deg=270, stability_class='D')
    values.update(overrides)
    db.session.add(WeatherSnapshot(**values))
    db.session.commit()


def test_generate_predictions(app, site):
    db.session.add(OdourSource(site_id=site.id, name='Inlet works',
                               geometry={'type': 'point', 'x': 20, 'y': 50}, base_intensity=4))
    db.session.add(OdourSource(site_id=site.id, name='Broken', geometry={'type': 'polygon'}))
    expired = OdourPrediction(site_id=site.id, source_id=1, geometry={},
                              valid_from=datetime.utcnow() - timedelta(hours=3),
                              valid_to=datetime.utcnow() - timedelta(hours=2))
    db.session.add(expired)
    db.session.commit()
    add_snapshot(site.id)

    result = generate_predictions(site.id, validity_hours=2)
    assert len(result['predictions']) == 1
    prediction = result['predictions'][0]
    assert prediction['model_version'] == MODEL_VERSION
    assert prediction['peak_intensity'] == 4.4
    assert result['weather']['stability_class'] == 'D'

    # Expired rows are replaced
    assert OdourPrediction.query.count() == 1
    assert len(active_predictions(site.id)) == 1


def test_generate_predictions_needs_weather(app, site):
    db.session.add(OdourSource(site_id=site.id, geometry={'type': 'point', 'x': 1, 'y': 1}))
    db.session.commit()
    with pytest.raises(PlumeError):
        generate_predictions(site.id)

    add_snapshot(site.id, stability_class=None)
    with pytest.raises(PlumeError):
        generate_predictions(site.id)


def test_generate_predictions_without_sources(app, site):
    assert generate_predictions(site.id)['predictions'] == []


def test_plume_endpoint(logged_in, site):
    r = logged_in.post('/functions/generate-plume-predictions', json={})
    assert r.status_code == 400

    logged_in.post('/environment/odour/sources', json={
        'name': 'Digester', 'geometry': {'type': 'point', 'x': 40, 'y': 40}, 'base_intensity': 3,
    })
    r = logged_in.post('/functions/generate-plume-predictions', json={'site_id': site.id})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'No weather data available'

    add_snapshot(site.id)
    r = logged_in.post('/functions/generate-plume-predictions', json={'site_id': site.id})
    assert r.status_code == 200
    r = logged_in.get('/environment/odour/predictions')
    assert len(r.get_json()) == 1
