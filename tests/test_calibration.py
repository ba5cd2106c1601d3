from datetime import datetime, timedelta

from waterops.models import CalibrationLog
from waterops.services.calibration import (
    calibration_status, deviation_percent, calibration_passed, create_schedule,
    record_calibration, due_calibrations, schedule_to_dict,
)

NOW = datetime(2026, 3, 10, 9, 0)


def test_calibration_status_labels():
    assert calibration_status(None, NOW)['label'] == 'Not Set'
    assert calibration_status(NOW - timedelta(days=2), NOW)['status'] == 'overdue'
    assert calibration_status(NOW.replace(hour=17), NOW)['label'] == 'Due Today'
    # Earlier the same day still counts as due today
    assert calibration_status(NOW.replace(hour=6), NOW)['status'] == 'due-today'

    soon = calibration_status(NOW + timedelta(days=2), NOW)
    assert soon == {'status': 'due-soon', 'label': 'Due in 2d', 'days_until': 2}
    assert calibration_status(NOW + timedelta(days=5), NOW)['status'] == 'ok'


def test_deviation_and_pass():
    assert deviation_percent(105, 100) == 5
    assert deviation_percent(None, 100) is None
    assert deviation_percent(1, 0) is None
    assert calibration_passed(9.9)
    assert not calibration_passed(10.1)
    assert calibration_passed(None)


def test_create_schedule_sets_due_date(app, site):
    schedule = create_schedule(site.id, 'Basin 1 DO sensor', 'do', 14)
    assert schedule.interval_days == 14
    assert (schedule.next_due_at - datetime.utcnow()).days in (13, 14)
    assert schedule_to_dict(schedule)['meter_type_label'] == 'Dissolved Oxygen'


def test_record_calibration_rolls_schedule_forward(app, site, operator):
    schedule = create_schedule(site.id, 'pH sensor', 'ph', 7)
    log = record_calibration(schedule, operator.id, pre_cal_reading=6.8,
                             post_cal_reading=7.35, reference_value=7.0)

    assert log.deviation_percent == 5.0
    assert log.passed is True
    assert schedule.last_calibration_at == log.calibrated_at
    assert schedule.next_due_at == log.calibrated_at + timedelta(days=7)
    assert CalibrationLog.query.count() == 1


def test_record_calibration_fails_outside_tolerance(app, site, operator):
    schedule = create_schedule(site.id, 'ORP sensor', 'orp', 7)
    log = record_calibration(schedule, operator.id, post_cal_reading=250, reference_value=200)
    assert log.passed is False


def test_due_calibrations(app, site):
    overdue = create_schedule(site.id, 'Overdue meter')
    overdue.next_due_at = datetime.utcnow() - timedelta(days=3)
    later = create_schedule(site.id, 'Later meter', interval_days=30)
    inactive = create_schedule(site.id, 'Inactive meter')
    inactive.next_due_at = datetime.utcnow()
    inactive.is_active = False

    due = due_calibrations(site.id, days_ahead=1)
    assert [s.meter_name for s in due] == ['Overdue meter']
    assert later not in due
    assert len(due_calibrations(site.id, days_ahead=40)) == 2
