"""
Odour Plume Model

Downwind cone footprints for odour sources, drawn in map-percent
coordinates from the latest weather snapshot of a site.
"""

import logging
import math
from datetime import datetime, timedelta

from waterops.extensions import db
from waterops.models import OdourSource, OdourPrediction
from waterops.services.weather import latest_snapshot

logger = logging.getLogger(__name__)

MODEL_VERSION = 'plume-v2.1'
METERS_TO_MAP_PERCENT = 0.02
MAX_DISTANCE_PCT = 60
CONE_SEGMENTS = 12
DEFAULT_DURATION_MIN = 60
DEFAULT_INTENSITY = 3

STABILITY_SPREAD = {'A': 0.35, 'B': 0.30, 'C': 0.27, 'D': 0.25, 'E': 0.20, 'F': 0.15}

CONTOUR_LEVELS = [(0.8, 'high'), (0.5, 'medium'), (0.2, 'low')]


class PlumeError(ValueError):
    """Raised when a site lacks the data needed for a prediction."""


def source_center(geometry):
    """Centre of a point or polygon source, or None for unusable geometry."""
    geometry = geometry or {}
    if geometry.get('type') == 'point' and geometry.get('x') is not None and geometry.get('y') is not None:
        return geometry['x'], geometry['y']
    coords = geometry.get('coordinates') or []
    if geometry.get('type') == 'polygon' and coords:
        x = sum(c['x'] for c in coords) / len(coords)
        y = sum(c['y'] for c in coords) / len(coords)
        return x, y
    return None


def _clamp(value):
    return max(0.0, min(100.0, value))


def intensity_at_distance(base_intensity, distance, max_distance):
    """Exponential decay of intensity along the plume axis."""
    if max_distance <= 0:
        return base_intensity
    return base_intensity * math.exp(-distance / (max_distance * 0.6))


def generate_plume(source_x, source_y, wind_dir_deg, wind_speed, duration_min,
                   base_intensity, stability):
    """Outer cone polygon, intensity contours and an axial intensity profile."""
    distance = min(wind_speed * duration_min * 60 * METERS_TO_MAP_PERCENT, MAX_DISTANCE_PCT)
    width = distance * STABILITY_SPREAD.get(stability, 0.25)

    # Wind direction is where it blows from; the plume travels the other way
    heading = math.radians((wind_dir_deg + 180) % 360)
    dx, dy = math.sin(heading), -math.cos(heading)
    px, py = math.cos(heading), math.sin(heading)

    def cone(fraction):
        cone_distance = distance * fraction
        cone_width = width * fraction
        right = []
        for i in range(1, CONE_SEGMENTS + 1):
            t = i / CONE_SEGMENTS
            cx = source_x + dx * cone_distance * t
            cy = source_y + dy * cone_distance * t
            half = cone_width * t * 0.5
            right.append((cx, cy, half))

        points = [{'x': source_x, 'y': source_y}]
        points += [{'x': cx + px * half, 'y': cy + py * half} for cx, cy, half in right]
        points.append({'x': source_x + dx * cone_distance, 'y': source_y + dy * cone_distance})
        points += [{'x': cx - px * half, 'y': cy - py * half} for cx, cy, half in reversed(right)]
        return [{'x': _clamp(p['x']), 'y': _clamp(p['y'])} for p in points]

    contours = []
    for threshold, label in CONTOUR_LEVELS:
        fraction = min(1.0, -math.log(threshold) * 0.6)
        if fraction > 0.05:
            contours.append({
                'level': label,
                'threshold': threshold,
                'intensity': round(base_intensity * threshold, 1),
                'coordinates': cone(fraction),
            })

    profile = [
        {'distance': i / 10 * distance,
         'intensity': intensity_at_distance(base_intensity, i / 10 * distance, distance)}
        for i in range(11)
    ]
    return {'geometry': cone(1.0), 'contours': contours, 'intensity_profile': profile}


def generate_predictions(site_id, validity_hours=1):
    """Replace expired predictions for a site with fresh ones for each source."""
    sources = OdourSource.query.filter_by(site_id=site_id).all()
    if not sources:
        return {'message': 'No odour sources found', 'predictions': []}

    weather = latest_snapshot(site_id)
    if weather is None:
        raise PlumeError('No weather data available')
    if weather.wind_speed_mps is None or weather.wind_direction_deg is None or not weather.stability_class:
        raise PlumeError('Incomplete weather data')

    valid_from = datetime.utcnow()
    valid_to = valid_from + timedelta(hours=validity_hours)

    predictions = []
    for source in sources:
        center = source_center(source.geometry)
        if center is None:
            logger.warning('Skipping odour source %s: invalid geometry', source.id)
            continue
        intensity = source.base_intensity or DEFAULT_INTENSITY
        plume = generate_plume(center[0], center[1], weather.wind_direction_deg,
                               weather.wind_speed_mps, DEFAULT_DURATION_MIN,
                               intensity, weather.stability_class)
        peak = intensity * (1 + weather.wind_speed_mps * 0.05)
        predictions.append(OdourPrediction(
            site_id=site_id,
            source_id=source.id,
            valid_from=valid_from,
            valid_to=valid_to,
            geometry={'type': 'polygon', 'coordinates': plume['geometry'],
                      'contours': plume['contours']},
            peak_intensity=round(peak, 1),
            model_version=MODEL_VERSION,
        ))

    OdourPrediction.query.filter(
        OdourPrediction.site_id == site_id,
        OdourPrediction.valid_to < valid_from,
    ).delete(synchronize_session=False)

    if not predictions:
        db.session.commit()
        return {'message': 'No predictions generated', 'predictions': []}

    db.session.add_all(predictions)
    db.session.commit()
    logger.info('Generated %d plume predictions for site %s', len(predictions), site_id)
    return {
        'message': f'Generated {len(predictions)} plume predictions',
        'predictions': [p.to_dict() for p in predictions],
        'weather': {
            'wind_speed': weather.wind_speed_mps,
            'wind_direction': weather.wind_direction_deg,
            'stability_class': weather.stability_class,
        },
    }


def active_predictions(site_id, now=None):
    now = now or datetime.utcnow()
    return OdourPrediction.query.filter(
        OdourPrediction.site_id == site_id,
        OdourPrediction.valid_to >= now,
    ).order_by(OdourPrediction.created_at.desc()).all()
