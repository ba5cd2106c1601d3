from datetime import date, datetime
from types import SimpleNamespace

import pytest

from waterops.services.evaluation import evaluate_reading
from waterops.services.parameters import PARAMETERS
from waterops.services.status import (
    classify_trend, range_status, daily_status, weekly_summary, monthly_calendar, week_start_for,
)


def reading(metric_id, value, when):
    return SimpleNamespace(metric_id=metric_id, value=value, recorded_at=when)


def test_trend_needs_three_points():
    assert classify_trend([7.0, 7.1], 'ph') is None
    assert classify_trend([7.0, 7.1, 7.0], 'ph') == 'stable'


def test_trend_rising_and_falling():
    assert classify_trend([7.0, 7.0, 7.0, 7.5, 7.6, 7.7], 'ph') == 'rising'
    assert classify_trend([7.7, 7.6, 7.5, 7.0, 7.0, 7.0], 'ph') == 'falling'


def test_trend_uses_last_seven_values():
    # Older values outside the window are ignored
    values = [1.0, 1.0, 1.0] + [7.0] * 7
    assert classify_trend(values, 'ph') == 'stable'


def test_range_status():
    assert range_status(7.0, 6.5, 8.5) == 'normal'
    assert range_status(8.9, 6.5, 8.5) == 'warning'
    assert range_status(9.6, 6.5, 8.5) == 'critical'
    assert range_status(-5, None, 8.5) == 'normal'
    assert range_status(100, None, 8.5) == 'warning'
    assert range_status(7.0, 6.5, 8.5, alarm={'min': 7.5}) == 'critical'


def test_daily_status_marks_missing_and_uses_thresholds():
    today = date(2026, 3, 10)
    readings = [
        reading('ph', 7.0, datetime(2026, 3, 10, 8, 0)),
        reading('do', 2.0, datetime(2026, 3, 9, 8, 0)),
        reading('orp', 150, datetime(2026, 3, 10, 9, 0)),
    ]
    thresholds = {'orp': {'min': 0, 'max': 100}}
    results = {r['metric_id']: r for r in daily_status(readings, thresholds, today, ['ph', 'do', 'orp'])}

    assert results['ph']['status'] == 'normal'
    assert results['do']['status'] == 'missing'
    assert results['do']['latest_value'] == 2.0
    assert results['orp']['status'] == 'warning'
    assert results['ph']['last_updated'] == '2026-03-10T08:00:00'


def test_daily_status_latest_reading_of_today_wins():
    today = date(2026, 3, 10)
    readings = [
        reading('ph', 9.6, datetime(2026, 3, 10, 8, 0)),
        reading('ph', 7.2, datetime(2026, 3, 10, 16, 0)),
    ]
    result = daily_status(readings, today=today, keys=['ph'])[0]
    assert result['latest_value'] == 7.2
    assert result['status'] == 'normal'


def test_week_start_for():
    assert week_start_for(date(2026, 3, 12)) == date(2026, 3, 9)
    assert week_start_for(date(2026, 3, 9)) == date(2026, 3, 9)


def test_weekly_summary():
    readings = [
        reading('ph', 7.0, datetime(2026, 3, 2, 8)),
        reading('do', 1.0, datetime(2026, 3, 3, 8)),
        reading('ph', 7.0, datetime(2026, 3, 9, 8)),
        reading('do', 2.0, datetime(2026, 3, 9, 8)),
        reading('ph', 7.2, datetime(2026, 3, 11, 8)),
    ]
    summary = weekly_summary(readings, date(2026, 3, 11), today=date(2026, 3, 12), keys=['ph', 'do', 'orp'])

    assert summary['week_start'] == '2026-03-09'
    assert summary['week_end'] == '2026-03-15'
    assert summary['missing_days'] == ['2026-03-10']
    assert summary['completion_percentage'] == 67
    assert summary['metrics']['ph']['trend'] == 'stable'
    assert summary['metrics']['ph']['count'] == 2
    assert summary['metrics']['do']['trend'] == 'up'
    assert summary['metrics']['orp']['current_avg'] is None
    assert summary['metrics']['orp']['trend'] is None
    assert [d['is_today'] for d in summary['days']].count(True) == 1


def test_monthly_calendar_statuses():
    readings = [
        reading('ph', 7.0, datetime(2026, 3, 1, 8)),
        reading('do', 2.0, datetime(2026, 3, 1, 8)),
        reading('ph', 7.1, datetime(2026, 3, 2, 8)),
    ]
    result = monthly_calendar(readings, 2026, 3, today=date(2026, 3, 4), expected_keys=['ph', 'do'])
    statuses = [d['status'] for d in result['days']]

    assert len(statuses) == 31
    assert statuses[:5] == ['complete', 'partial', 'missing', 'today-pending', 'future']
    assert result['stats']['total_days'] == 3
    assert result['stats']['complete'] == 1
    assert result['stats']['partial'] == 1
    assert result['stats']['missing'] == 1
    assert result['stats']['completion_rate'] == 67


def test_monthly_calendar_without_past_days():
    result = monthly_calendar([], 2026, 4, today=date(2026, 3, 20))
    assert all(d['status'] == 'future' for d in result['days'])
    assert result['stats']['completion_rate'] == 100


def _band_edges():
    for key, param in PARAMETERS.items():
        for side, bound in param['watch'].items():
            yield key, side, bound


def _status_today(key, value):
    today = date(2026, 3, 10)
    return daily_status([reading(key, value, datetime(2026, 3, 10, 8))], today=today, keys=[key])[0]['status']


@pytest.mark.parametrize('key,side,bound', list(_band_edges()))
def test_daily_status_agrees_with_evaluation_at_watch_edges(key, side, bound):
    step = 0.001 if side == 'max' else -0.001
    outside = bound + step
    inside = bound - step

    assert evaluate_reading(key, outside)['severity'] != 'ok'
    assert _status_today(key, outside) != 'normal'
    assert evaluate_reading(key, inside)['severity'] == 'ok'
    assert _status_today(key, inside) == 'normal'


@pytest.mark.parametrize('key', list(PARAMETERS))
def test_daily_status_critical_beyond_alarm_band(key):
    for side, bound in PARAMETERS[key]['alarm'].items():
        value = bound + 0.001 if side == 'max' else bound - 0.001
        assert evaluate_reading(key, value)['severity'] == 'alarm'
        assert _status_today(key, value) == 'critical'


def test_one_sided_parameters_have_no_lower_limit():
    assert evaluate_reading('conductivity', 100)['severity'] == 'ok'
    assert _status_today('conductivity', 100) == 'normal'
    assert _status_today('sludge_blanket_depth', 0.1) == 'normal'
    assert _status_today('do', 3.5) == 'warning'
