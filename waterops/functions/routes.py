"""
Function Routes

POST endpoints that run background-style jobs on demand: weather
collection, weather lookup, plume generation and email dispatch.
Jobs that span sites need a supervisor; operators only reach their own
site.
"""

import logging

from flask import request, jsonify
from flask_login import login_required, current_user
from waterops.auth.decorators import supervisor_required
from waterops.extensions import db
from waterops.functions import functions_bp
from waterops.models import AlertEvent, OdourIncident
from waterops.services.notifications import (
    send_calibration_reminders, send_missing_readings_reminder, send_odour_alert, send_odour_digest,
    EmailNotConfigured,
)
from waterops.services.plume import generate_predictions, PlumeError
from waterops.services.readings import parse_date
from waterops.services.sites import resolve_site_id
from waterops.services.weather import fetch_weather_snapshots, get_weather
from waterops.dashboard.services import notify_alert

logger = logging.getLogger(__name__)


def _json():
    return request.get_json(silent=True) or {}


def _own_site(site_id):
    """True when the caller may act on ``site_id``; operators only reach their own site."""
    return current_user.is_supervisor or site_id == resolve_site_id(current_user)


@functions_bp.route('/fetch-weather-snapshots', methods=['POST'])
@login_required
@supervisor_required
def fetch_weather():
    try:
        return jsonify(fetch_weather_snapshots())
    except Exception as e:
        db.session.rollback()
        logger.error('Weather snapshot job failed: %s', e)
        return jsonify({'error': str(e)}), 500


@functions_bp.route('/get-weather', methods=['POST'])
@login_required
def weather_lookup():
    """Current weather for explicit coordinates."""
    data = _json()
    latitude = data.get('latitude')
    longitude = data.get('longitude')
    if latitude is None or longitude is None:
        return jsonify({'error': 'Latitude and longitude are required'}), 400

    result = get_weather(latitude, longitude)
    if result.get('error'):
        status = 500 if result['message'] == 'Weather API not configured' else 502
        return jsonify({'error': result['message']}), status
    result.pop('error')
    return jsonify(result)


@functions_bp.route('/send-alert-email', methods=['POST'])
@login_required
def alert_email():
    try:
        alert_id = int(_json()['alert_event_id'])
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'alert_event_id is required'}), 400
    alert = db.session.get(AlertEvent, alert_id)
    if alert is None or not _own_site(alert.site_id):
        return jsonify({'error': 'Alert not found'}), 404

    result = notify_alert(alert)
    if result.get('error'):
        return jsonify(result), 500
    return jsonify(result)


@functions_bp.route('/send-calibration-reminders', methods=['POST'])
@login_required
@supervisor_required
def calibration_reminders():
    data = _json()
    try:
        days_ahead = int(data.get('days_ahead', 1))
        return jsonify(send_calibration_reminders(data.get('site_id'), days_ahead))
    except (TypeError, ValueError):
        return jsonify({'error': 'days_ahead must be an integer'}), 400
    except EmailNotConfigured as e:
        return jsonify({'error': str(e)}), 500


@functions_bp.route('/send-missing-readings-reminder', methods=['POST'])
@login_required
@supervisor_required
def missing_readings_reminder():
    data = _json()
    try:
        check_date = parse_date(data.get('check_date'))
    except ValueError:
        return jsonify({'error': 'Invalid check_date'}), 400
    try:
        return jsonify(send_missing_readings_reminder(data.get('site_id'), check_date))
    except EmailNotConfigured as e:
        return jsonify({'error': str(e)}), 500


@functions_bp.route('/send-odour-alert', methods=['POST'])
@login_required
@supervisor_required
def odour_alert():
    try:
        incident_id = int(_json()['incident_id'])
    except (KeyError, TypeError, ValueError):
        return jsonify({'error': 'incident_id is required'}), 400
    incident = db.session.get(OdourIncident, incident_id)
    if incident is None:
        return jsonify({'error': 'Incident not found'}), 404
    try:
        return jsonify(send_odour_alert(incident))
    except EmailNotConfigured as e:
        return jsonify({'error': str(e)}), 500


@functions_bp.route('/send-odour-digest', methods=['POST'])
@login_required
@supervisor_required
def odour_digest():
    data = _json()
    try:
        days = int(data.get('days', 7))
    except (TypeError, ValueError):
        days = 0
    if days < 1:
        return jsonify({'error': 'days must be a positive integer'}), 400
    try:
        return jsonify(send_odour_digest(data.get('site_id'), days))
    except EmailNotConfigured as e:
        return jsonify({'error': str(e)}), 500


@functions_bp.route('/generate-plume-predictions', methods=['POST'])
@login_required
def plume_predictions():
    data = _json()
    if data.get('site_id') is None:
        return jsonify({'error': 'site_id is required'}), 400
    try:
        site_id = resolve_site_id(current_user, data['site_id']) if current_user.is_supervisor \
            else int(data['site_id'])
        validity_hours = float(data.get('validity_hours', 1))
    except (TypeError, ValueError):
        return jsonify({'error': 'site_id and validity_hours must be numbers'}), 400
    if not _own_site(site_id):
        return jsonify({'error': 'Forbidden - site not accessible'}), 403
    try:
        return jsonify(generate_predictions(site_id, validity_hours))
    except PlumeError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
