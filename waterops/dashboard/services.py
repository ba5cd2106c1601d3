"""
Dashboard Services

Reading intake with alert evaluation and notification, plus the site
overview shown on the dashboard.
"""

import logging

from waterops.extensions import db
from waterops.services.alerts import raise_alert_for_reading, active_alert_count
from waterops.services.notifications import send_alert_email, EmailNotConfigured
from waterops.services.playbooks import get_playbook
from waterops.services.readings import add_readings, get_thresholds, threshold_limits, recent_readings, enabled_metrics
from waterops.services.status import daily_status
from waterops.services.weather import latest_snapshot
from waterops.services.stability import describe_stability

logger = logging.getLogger(__name__)


def notify_alert(alert):
    """Email an alert with its playbook steps; delivery problems never fail the request."""
    playbook = get_playbook(alert.site_id, alert.metric_id, alert.condition) if alert.condition else None
    steps = playbook['steps'] if playbook else []
    try:
        return send_alert_email(alert, steps)
    except EmailNotConfigured as e:
        logger.warning('Alert %s not emailed: %s', alert.id, e)
        return {'error': str(e)}


def record_readings(site_id, user_id, entries, recorded_at=None, notify=True):
    """Save readings, raise alerts for any breach and notify recipients."""
    readings = add_readings(site_id, user_id, entries, recorded_at)
    thresholds = get_thresholds(site_id)

    results = []
    alerts = []
    for reading in readings:
        alert, evaluation = raise_alert_for_reading(reading, thresholds.get(reading.metric_id))
        if alert is not None:
            alerts.append(alert)
        results.append({'reading': reading, 'evaluation': evaluation, 'alert': alert})
    db.session.commit()

    if notify:
        for alert in alerts:
            notify_alert(alert)
    return results


def site_overview(site_id):
    """Today's status per enabled parameter, active alerts and latest weather."""
    keys = enabled_metrics(site_id)
    status = daily_status(recent_readings(site_id), threshold_limits(site_id), keys=keys)
    snapshot = latest_snapshot(site_id)
    weather = None
    if snapshot is not None:
        weather = snapshot.to_dict()
        weather['stability'] = describe_stability(snapshot.stability_class)

    return {
        'site_id': site_id,
        'daily_status': status,
        'missing_today': [s['metric_id'] for s in status if s['status'] == 'missing'],
        'active_alerts': active_alert_count(site_id),
        'weather': weather,
    }
