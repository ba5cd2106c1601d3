"""
Reading and Threshold Services

Persistence helpers for process readings, site thresholds and per-site
parameter configuration.
"""

import logging
import math
from datetime import datetime, date, time, timedelta

from flask import current_app

from waterops.extensions import db
from waterops.models import Reading, Threshold, SiteMetricConfig
from waterops.services.parameters import PARAMETERS, DEFAULT_PARAMETER_ORDER, default_thresholds

logger = logging.getLogger(__name__)


def parse_value(raw):
    """Coerce a submitted value to a finite float or raise ValueError."""
    if raw is None or isinstance(raw, bool):
        raise ValueError('value is required')
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError('value must be a finite number')
    return value


def parse_timestamp(raw):
    if not raw:
        return datetime.utcnow()
    if isinstance(raw, datetime):
        return raw
    parsed = datetime.fromisoformat(str(raw).replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def add_readings(site_id, user_id, entries, recorded_at=None):
    """Insert readings sharing one timestamp.

    ``entries`` is a list of ``{'metric_id', 'value', 'notes'}`` dicts. All
    entries are validated before anything is written.
    """
    if not entries:
        raise ValueError('At least one reading is required')
    timestamp = parse_timestamp(recorded_at)

    readings = []
    for entry in entries:
        metric_id = entry.get('metric_id')
        if metric_id not in PARAMETERS:
            raise ValueError(f'Unknown parameter: {metric_id}')
        try:
            value = parse_value(entry.get('value'))
        except (TypeError, ValueError):
            raise ValueError(f'Invalid value for {metric_id}')
        readings.append(Reading(
            site_id=site_id,
            metric_id=metric_id,
            value=value,
            notes=entry.get('notes'),
            entered_by=user_id,
            recorded_at=timestamp,
        ))

    db.session.add_all(readings)
    db.session.commit()
    logger.info('Saved %d readings for site %s', len(readings), site_id)
    return readings


def recent_readings(site_id, days=None):
    """Readings from the last ``days`` days, newest first."""
    days = days or current_app.config.get('READINGS_WINDOW_DAYS', 30)
    since = datetime.utcnow() - timedelta(days=days)
    return Reading.query.filter(
        Reading.site_id == site_id,
        Reading.recorded_at >= since,
    ).order_by(Reading.recorded_at.desc()).all()


def readings_between(site_id, start, end):
    """Readings with ``start <= recorded_at < end``, oldest first."""
    return Reading.query.filter(
        Reading.site_id == site_id,
        Reading.recorded_at >= start,
        Reading.recorded_at < end,
    ).order_by(Reading.recorded_at.asc()).all()


def readings_for_date(site_id, day):
    start = datetime.combine(day, time.min)
    return readings_between(site_id, start, start + timedelta(days=1))


def todays_readings(site_id):
    return readings_for_date(site_id, datetime.utcnow().date())


def get_thresholds(site_id):
    """Threshold rows for a site keyed by parameter."""
    return {t.metric_id: t for t in Threshold.query.filter_by(site_id=site_id).all()}


def threshold_limits(site_id):
    """Min/max per parameter: enabled site thresholds over catalog watch bands."""
    limits = default_thresholds()
    for key, row in get_thresholds(site_id).items():
        if row.enabled and key in limits:
            limits[key] = {'min': row.min_value, 'max': row.max_value}
    return limits


def save_threshold(site_id, metric_id, min_value=None, max_value=None, enabled=True):
    """Insert or update the threshold for (site, metric)."""
    if metric_id not in PARAMETERS:
        raise ValueError(f'Unknown parameter: {metric_id}')
    min_value = parse_value(min_value) if min_value is not None else None
    max_value = parse_value(max_value) if max_value is not None else None
    if min_value is not None and max_value is not None and min_value > max_value:
        raise ValueError('min_value must not exceed max_value')

    threshold = Threshold.query.filter_by(site_id=site_id, metric_id=metric_id).first()
    if threshold is None:
        threshold = Threshold(site_id=site_id, metric_id=metric_id)
        db.session.add(threshold)
    threshold.min_value = min_value
    threshold.max_value = max_value
    threshold.enabled = bool(enabled)
    db.session.commit()
    return threshold


def metric_config(site_id):
    """Every parameter with its enabled flag and display order for the site."""
    saved = {c.metric_id: c for c in SiteMetricConfig.query.filter_by(site_id=site_id).all()}
    merged = []
    for index, key in enumerate(DEFAULT_PARAMETER_ORDER):
        row = saved.get(key)
        merged.append({
            'metric_id': key,
            'label': PARAMETERS[key]['label'],
            'category': PARAMETERS[key]['category'],
            'is_enabled': row.is_enabled if row else True,
            'display_order': row.display_order if row and row.display_order is not None else index,
        })
    merged.sort(key=lambda item: item['display_order'])
    return merged


def enabled_metrics(site_id):
    return [item['metric_id'] for item in metric_config(site_id) if item['is_enabled']]


def save_metric_config(site_id, items):
    """Upsert enabled flag and display order for each submitted parameter."""
    saved = {c.metric_id: c for c in SiteMetricConfig.query.filter_by(site_id=site_id).all()}
    for item in items:
        metric_id = item.get('metric_id')
        if metric_id not in PARAMETERS:
            raise ValueError(f'Unknown parameter: {metric_id}')
        row = saved.get(metric_id)
        if row is None:
            row = SiteMetricConfig(site_id=site_id, metric_id=metric_id)
            db.session.add(row)
            saved[metric_id] = row
        if 'is_enabled' in item:
            row.is_enabled = bool(item['is_enabled'])
        if 'display_order' in item:
            row.display_order = int(item['display_order'])
    db.session.commit()
    return metric_config(site_id)


def parse_date(raw, default=None):
    if not raw:
        return default or datetime.utcnow().date()
    return date.fromisoformat(raw)
