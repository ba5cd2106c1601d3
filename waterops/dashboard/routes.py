"""
Dashboard Routes

Reading entry, status summaries and alert handling for the operator's site.
"""

import calendar
import logging
from datetime import datetime, timedelta

from flask import request, redirect, url_for, jsonify
from flask_login import login_required, current_user
from waterops.dashboard import dashboard_bp
from waterops.dashboard.services import record_readings, site_overview
from waterops.extensions import db
from waterops.models import AlertEvent
from waterops.services.alerts import acknowledge_alert, resolve_alert, list_alerts, InvalidTransition
from waterops.services.evaluation import evaluate_readings
from waterops.services.parameters import PARAMETERS, parameters_by_category
from waterops.services.readings import (
    recent_readings, readings_for_date, todays_readings, readings_between,
    threshold_limits, enabled_metrics, get_thresholds, parse_date,
)
from waterops.services.sites import resolve_site_id
from waterops.services.status import daily_status, weekly_summary, monthly_calendar, week_start_for

logger = logging.getLogger(__name__)


def _site_id():
    return resolve_site_id(current_user, request.args.get('site_id'))


@dashboard_bp.route('/')
def index():
    """Redirect to dashboard if logged in, otherwise to login"""
    if current_user.is_authenticated:
        return redirect(url_for('dashboard.dashboard'))
    return redirect(url_for('auth.login'))


@dashboard_bp.route('/dashboard')
@login_required
def dashboard():
    """Site overview: today's status, active alerts and latest weather"""
    return jsonify(site_overview(_site_id()))


@dashboard_bp.route('/api/parameters')
@login_required
def parameters():
    return jsonify({
        'parameters': {key: dict(param, key=key) for key, param in PARAMETERS.items()},
        'categories': parameters_by_category(),
    })


@dashboard_bp.route('/api/readings', methods=['GET'])
@login_required
def list_readings():
    """Readings for the last N days (default 30), or for one date."""
    site_id = _site_id()
    try:
        if request.args.get('date'):
            readings = readings_for_date(site_id, parse_date(request.args['date']))
        else:
            readings = recent_readings(site_id, request.args.get('days', type=int))
    except ValueError:
        return jsonify({'error': 'Invalid date'}), 400
    return jsonify([r.to_dict() for r in readings])


@dashboard_bp.route('/api/readings/today')
@login_required
def list_todays_readings():
    return jsonify([r.to_dict() for r in todays_readings(_site_id())])


@dashboard_bp.route('/api/readings', methods=['POST'])
@login_required
def create_readings():
    """Record one reading or a batch sharing one timestamp.

    Body is either ``{metric_id, value, notes?, recorded_at?}`` or
    ``{readings: [...], recorded_at?}``.
    """
    data = request.get_json(silent=True) or {}
    entries = data.get('readings')
    if entries is None:
        entries = [data]

    try:
        results = record_readings(_site_id(), current_user.id, entries, data.get('recorded_at'))
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        logger.error('Could not save readings: %s', e)
        return jsonify({'error': 'Could not save readings.'}), 500

    return jsonify({
        'readings': [
            dict(r['reading'].to_dict(),
                 evaluation=r['evaluation'],
                 alert=r['alert'].to_dict() if r['alert'] else None)
            for r in results
        ],
    }), 201


@dashboard_bp.route('/api/evaluate', methods=['POST'])
@login_required
def evaluate():
    """Evaluate values against the site's bands without saving them."""
    data = request.get_json(silent=True) or {}
    pairs = [(item.get('metric_id'), item.get('value')) for item in data.get('readings', [])]
    return jsonify(evaluate_readings(pairs, get_thresholds(_site_id())))


@dashboard_bp.route('/api/status/daily')
@login_required
def status_daily():
    site_id = _site_id()
    try:
        day = parse_date(request.args.get('date'))
    except ValueError:
        return jsonify({'error': 'Invalid date'}), 400
    start = datetime.combine(day, datetime.min.time()) - timedelta(days=30)
    readings = readings_between(site_id, start, start + timedelta(days=31))
    return jsonify(daily_status(readings, threshold_limits(site_id), today=day,
                                keys=enabled_metrics(site_id)))


@dashboard_bp.route('/api/status/weekly')
@login_required
def status_weekly():
    site_id = _site_id()
    try:
        week_start = week_start_for(parse_date(request.args.get('week_start')))
    except ValueError:
        return jsonify({'error': 'Invalid week_start'}), 400
    start = datetime.combine(week_start - timedelta(days=7), datetime.min.time())
    readings = readings_between(site_id, start, start + timedelta(days=14))
    return jsonify(weekly_summary(readings, week_start, keys=enabled_metrics(site_id)))


@dashboard_bp.route('/api/status/monthly')
@login_required
def status_monthly():
    site_id = _site_id()
    today = datetime.utcnow().date()
    year = request.args.get('year', today.year, type=int)
    month = request.args.get('month', today.month, type=int)
    if not 1 <= month <= 12:
        return jsonify({'error': 'month must be 1-12'}), 400

    start = datetime(year, month, 1)
    end = start + timedelta(days=calendar.monthrange(year, month)[1])
    readings = readings_between(site_id, start, end)
    return jsonify(monthly_calendar(readings, year, month, expected_keys=enabled_metrics(site_id)))


@dashboard_bp.route('/api/alerts')
@login_required
def alerts():
    status = request.args.get('status')
    limit = request.args.get('limit', 100, type=int)
    return jsonify([a.to_dict() for a in list_alerts(_site_id(), status, limit)])


def _site_alert(alert_id):
    return AlertEvent.query.filter_by(id=alert_id, site_id=_site_id()).first_or_404()


@dashboard_bp.route('/api/alerts/<int:alert_id>/acknowledge', methods=['POST'])
@login_required
def acknowledge(alert_id):
    alert = _site_alert(alert_id)
    data = request.get_json(silent=True) or {}
    try:
        acknowledge_alert(alert, current_user.id, data.get('notes'))
    except InvalidTransition as e:
        return jsonify({'error': str(e)}), 409
    return jsonify(alert.to_dict())


@dashboard_bp.route('/api/alerts/<int:alert_id>/resolve', methods=['POST'])
@login_required
def resolve(alert_id):
    alert = _site_alert(alert_id)
    data = request.get_json(silent=True) or {}
    try:
        resolve_alert(alert, data.get('notes'))
    except InvalidTransition as e:
        return jsonify({'error': str(e)}), 409
    return jsonify(alert.to_dict())
