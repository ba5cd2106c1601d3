"""
Settings Routes

Site thresholds, parameter configuration, playbooks and calibration
schedules.
"""

import logging

from flask import request, jsonify
from flask_login import login_required, current_user
from waterops.settings import settings_bp
from waterops.extensions import db
from waterops.models import CalibrationSchedule, CalibrationLog
from waterops.services import calibration as calibration_service
from waterops.services import playbooks as playbook_service
from waterops.services.readings import get_thresholds, save_threshold, metric_config, save_metric_config
from waterops.services.parameters import PARAMETERS
from waterops.services.sites import resolve_site_id

logger = logging.getLogger(__name__)


def _site_id():
    return resolve_site_id(current_user, request.args.get('site_id'))


def _json():
    return request.get_json(silent=True) or {}


# Thresholds

@settings_bp.route('/thresholds', methods=['GET'])
@login_required
def list_thresholds():
    """Saved thresholds merged with catalog watch bands."""
    saved = get_thresholds(_site_id())
    items = []
    for key, param in PARAMETERS.items():
        row = saved.get(key)
        watch = param['watch']
        items.append({
            'metric_id': key,
            'label': param['label'],
            'unit': param['unit'],
            'min_value': row.min_value if row else watch.get('min'),
            'max_value': row.max_value if row else watch.get('max'),
            'enabled': row.enabled if row else True,
            'is_default': row is None,
        })
    return jsonify(items)


@settings_bp.route('/thresholds/<metric_id>', methods=['PUT'])
@login_required
def update_threshold(metric_id):
    data = _json()
    try:
        threshold = save_threshold(_site_id(), metric_id, data.get('min_value'),
                                   data.get('max_value'), data.get('enabled', True))
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(threshold.to_dict())


# Parameter configuration

@settings_bp.route('/metrics', methods=['GET'])
@login_required
def list_metric_config():
    return jsonify(metric_config(_site_id()))


@settings_bp.route('/metrics', methods=['PUT'])
@login_required
def update_metric_config():
    items = _json().get('metrics')
    if not isinstance(items, list):
        return jsonify({'error': 'metrics must be a list'}), 400
    try:
        return jsonify(save_metric_config(_site_id(), items))
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400


# Playbooks

@settings_bp.route('/playbooks', methods=['GET'])
@login_required
def list_playbooks():
    return jsonify(playbook_service.all_playbooks(_site_id()))


@settings_bp.route('/playbooks/<metric_id>/<condition>', methods=['GET'])
@login_required
def get_playbook(metric_id, condition):
    playbook = playbook_service.get_playbook(_site_id(), metric_id, condition)
    if playbook is None:
        return jsonify({'error': 'Playbook not found'}), 404
    return jsonify(playbook)


@settings_bp.route('/playbooks', methods=['POST', 'PUT'])
@login_required
def save_playbook():
    try:
        playbook = playbook_service.save_playbook(_site_id(), _json())
    except ValueError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(playbook.to_dict())


@settings_bp.route('/playbooks/<int:playbook_id>', methods=['DELETE'])
@login_required
def delete_playbook(playbook_id):
    if not playbook_service.delete_playbook(_site_id(), playbook_id):
        return jsonify({'error': 'Playbook not found'}), 404
    return jsonify({'deleted': playbook_id})


@settings_bp.route('/playbooks/initialize', methods=['POST'])
@login_required
def initialize_playbooks():
    created = playbook_service.initialize_defaults(_site_id())
    return jsonify({'created': created})


# Calibrations

@settings_bp.route('/calibrations', methods=['GET'])
@login_required
def list_calibrations():
    schedules = CalibrationSchedule.query.filter_by(site_id=_site_id())\
        .order_by(CalibrationSchedule.next_due_at.asc()).all()
    return jsonify([calibration_service.schedule_to_dict(s) for s in schedules])


@settings_bp.route('/calibrations/due', methods=['GET'])
@login_required
def list_due_calibrations():
    days_ahead = request.args.get('days_ahead', 1, type=int)
    schedules = calibration_service.due_calibrations(_site_id(), days_ahead)
    return jsonify([calibration_service.schedule_to_dict(s) for s in schedules])


@settings_bp.route('/calibrations', methods=['POST'])
@login_required
def create_calibration():
    data = _json()
    try:
        schedule = calibration_service.create_schedule(
            _site_id(),
            data.get('meter_name'),
            data.get('meter_type'),
            data.get('interval_days'),
            data.get('assigned_to'),
            data.get('notes'),
        )
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(calibration_service.schedule_to_dict(schedule)), 201


def _site_schedule(schedule_id):
    return CalibrationSchedule.query.filter_by(id=schedule_id, site_id=_site_id()).first_or_404()


@settings_bp.route('/calibrations/<int:schedule_id>', methods=['PATCH'])
@login_required
def update_calibration(schedule_id):
    schedule = _site_schedule(schedule_id)
    try:
        calibration_service.update_schedule(schedule, _json())
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify(calibration_service.schedule_to_dict(schedule))


@settings_bp.route('/calibrations/<int:schedule_id>', methods=['DELETE'])
@login_required
def delete_calibration(schedule_id):
    schedule = _site_schedule(schedule_id)
    db.session.delete(schedule)
    db.session.commit()
    return jsonify({'deleted': schedule_id})


@settings_bp.route('/calibrations/<int:schedule_id>/logs', methods=['GET'])
@login_required
def calibration_logs(schedule_id):
    schedule = _site_schedule(schedule_id)
    logs = CalibrationLog.query.filter_by(schedule_id=schedule.id)\
        .order_by(CalibrationLog.calibrated_at.desc()).all()
    return jsonify([log.to_dict() for log in logs])


def _optional_float(data, key):
    value = data.get(key)
    return float(value) if value not in (None, '') else None


@settings_bp.route('/calibrations/<int:schedule_id>/logs', methods=['POST'])
@login_required
def record_calibration(schedule_id):
    schedule = _site_schedule(schedule_id)
    data = _json()
    try:
        log = calibration_service.record_calibration(
            schedule,
            current_user.id,
            pre_cal_reading=_optional_float(data, 'pre_cal_reading'),
            post_cal_reading=_optional_float(data, 'post_cal_reading'),
            reference_value=_optional_float(data, 'reference_value'),
            notes=data.get('notes'),
            passed=data.get('passed'),
        )
    except (TypeError, ValueError) as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 400
    return jsonify({'log': log.to_dict(), 'schedule': calibration_service.schedule_to_dict(schedule)}), 201
