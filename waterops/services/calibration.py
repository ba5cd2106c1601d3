"""
Calibration Services

Due-date status for calibration schedules and recording of completed
calibrations.
"""

import logging
import math
from datetime import datetime, timedelta

from flask import current_app

from waterops.extensions import db
from waterops.models import CalibrationSchedule, CalibrationLog

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_DAYS = 7
DUE_SOON_DAYS = 2

METER_TYPES = {
    'mlss': 'MLSS/TSS Sensor',
    'do': 'Dissolved Oxygen',
    'ph': 'pH Sensor',
    'orp': 'ORP Sensor',
    'ammonia': 'Ammonia Analyzer',
    'nitrate': 'Nitrate Analyzer',
    'turbidity': 'Turbidity Meter',
    'flow': 'Flow Meter',
    'level': 'Level Sensor',
    'general': 'General/Other',
}


def calibration_status(next_due_at, now=None):
    """Derive due status and a display label from ``next_due_at``."""
    if next_due_at is None:
        return {'status': 'unknown', 'label': 'Not Set', 'days_until': None}

    now = now or datetime.utcnow()
    if next_due_at.date() == now.date():
        return {'status': 'due-today', 'label': 'Due Today', 'days_until': 0}
    if next_due_at < now:
        return {'status': 'overdue', 'label': 'Overdue', 'days_until': None}

    days_until = math.ceil((next_due_at - now).total_seconds() / 86400)
    status = 'due-soon' if days_until <= DUE_SOON_DAYS else 'ok'
    return {'status': status, 'label': f'Due in {days_until}d', 'days_until': days_until}


def deviation_percent(post_cal_reading, reference_value):
    """Relative error of the post-calibration reading, in percent."""
    if post_cal_reading is None or reference_value is None or reference_value == 0:
        return None
    return abs(post_cal_reading - reference_value) / reference_value * 100


def calibration_passed(deviation, tolerance=10.0):
    return deviation is None or deviation <= tolerance


def schedule_to_dict(schedule, now=None):
    data = schedule.to_dict()
    data['meter_type_label'] = METER_TYPES.get(schedule.meter_type, schedule.meter_type)
    data['due'] = calibration_status(schedule.next_due_at, now)
    return data


def create_schedule(site_id, meter_name, meter_type='general', interval_days=None,
                    assigned_to=None, notes=None):
    if not meter_name:
        raise ValueError('meter_name is required')
    interval = int(interval_days or DEFAULT_INTERVAL_DAYS)
    if interval <= 0:
        raise ValueError('interval_days must be positive')

    schedule = CalibrationSchedule(
        site_id=site_id,
        meter_name=meter_name,
        meter_type=meter_type or 'general',
        interval_days=interval,
        next_due_at=datetime.utcnow() + timedelta(days=interval),
        assigned_to=assigned_to,
        notes=notes,
    )
    db.session.add(schedule)
    db.session.commit()
    logger.info('Created calibration schedule %s for site %s', meter_name, site_id)
    return schedule


def update_schedule(schedule, data):
    for field in ('meter_name', 'meter_type', 'assigned_to', 'notes', 'is_active'):
        if field in data:
            setattr(schedule, field, data[field])
    if data.get('interval_days'):
        interval = int(data['interval_days'])
        if interval <= 0:
            raise ValueError('interval_days must be positive')
        schedule.interval_days = interval
    db.session.commit()
    return schedule


def record_calibration(schedule, user_id, pre_cal_reading=None, post_cal_reading=None,
                       reference_value=None, notes=None, passed=None):
    """Log a calibration and roll the schedule forward by its interval."""
    tolerance = current_app.config.get('CALIBRATION_TOLERANCE_PCT', 10.0)
    deviation = deviation_percent(post_cal_reading, reference_value)
    if passed is None:
        passed = calibration_passed(deviation, tolerance)

    now = datetime.utcnow()
    log = CalibrationLog(
        schedule_id=schedule.id,
        calibrated_by=user_id,
        calibrated_at=now,
        pre_cal_reading=pre_cal_reading,
        post_cal_reading=post_cal_reading,
        reference_value=reference_value,
        deviation_percent=round(deviation, 2) if deviation is not None else None,
        passed=passed,
        notes=notes,
    )
    schedule.last_calibration_at = now
    schedule.next_due_at = now + timedelta(days=schedule.interval_days or DEFAULT_INTERVAL_DAYS)
    db.session.add(log)
    db.session.commit()

    if not passed:
        logger.warning('Calibration of %s failed: deviation %s%%', schedule.meter_name, log.deviation_percent)
    return log


def due_calibrations(site_id=None, days_ahead=1, now=None):
    """Active schedules due on or before ``now + days_ahead``, earliest first."""
    now = now or datetime.utcnow()
    cutoff = now + timedelta(days=days_ahead)
    query = CalibrationSchedule.query.filter(
        CalibrationSchedule.is_active.is_(True),
        CalibrationSchedule.next_due_at.isnot(None),
        CalibrationSchedule.next_due_at <= cutoff,
    )
    if site_id is not None:
        query = query.filter_by(site_id=site_id)
    return query.order_by(CalibrationSchedule.next_due_at.asc()).all()
