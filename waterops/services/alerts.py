"""
Alert Services

Raising alert events from evaluated readings and moving them through the
active -> acknowledged -> resolved lifecycle.
"""

import logging
from datetime import datetime

from waterops.extensions import db
from waterops.models import AlertEvent
from waterops.services.evaluation import evaluate_reading, effective_bands, alert_severity
from waterops.services.parameters import PARAMETERS

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    'acknowledged': ('active',),
    'resolved': ('active', 'acknowledged'),
}


class InvalidTransition(ValueError):
    """Raised when an alert cannot move to the requested status."""

    def __init__(self, alert, target):
        self.alert = alert
        self.target = target
        super().__init__(f'Cannot move alert {alert.id} from {alert.status} to {target}')


def raise_alert_for_reading(reading, threshold=None):
    """Create an alert event when a reading breaches its bands.

    Returns ``(alert, evaluation)``; ``alert`` is None for an ok reading.
    The caller commits.
    """
    evaluation = evaluate_reading(reading.metric_id, reading.value, threshold)
    if evaluation['severity'] == 'ok':
        return None, evaluation

    watch, _alarm = effective_bands(reading.metric_id, threshold)
    alert = AlertEvent(
        site_id=reading.site_id,
        reading_id=reading.id,
        metric_id=reading.metric_id,
        metric_name=PARAMETERS[reading.metric_id]['label'],
        value=reading.value,
        threshold_min=watch.get('min'),
        threshold_max=watch.get('max'),
        condition=evaluation['condition'],
        severity=alert_severity(evaluation['severity']),
        status='active',
        triggered_at=reading.recorded_at or datetime.utcnow(),
    )
    db.session.add(alert)
    logger.info('Raised %s alert for %s=%s at site %s',
                alert.severity, reading.metric_id, reading.value, reading.site_id)
    return alert, evaluation


def _transition(alert, target):
    if alert.status not in ALLOWED_TRANSITIONS[target]:
        raise InvalidTransition(alert, target)
    alert.status = target


def acknowledge_alert(alert, user_id, notes=None):
    _transition(alert, 'acknowledged')
    alert.acknowledged_at = datetime.utcnow()
    alert.acknowledged_by = user_id
    if notes:
        alert.notes = notes
    db.session.commit()
    return alert


def resolve_alert(alert, notes=None):
    _transition(alert, 'resolved')
    alert.resolved_at = datetime.utcnow()
    if notes:
        alert.notes = notes
    db.session.commit()
    return alert


def list_alerts(site_id, status=None, limit=100):
    query = AlertEvent.query.filter_by(site_id=site_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(AlertEvent.triggered_at.desc()).limit(limit).all()


def active_alert_count(site_id):
    return AlertEvent.query.filter_by(site_id=site_id, status='active').count()
