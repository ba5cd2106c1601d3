from types import SimpleNamespace

from waterops.services.evaluation import (
    severity_for, breach_direction, effective_bands, evaluate_reading, evaluate_readings, format_band,
)


def test_severity_alarm_checked_before_watch():
    watch = {'min': 6.5, 'max': 8.5}
    alarm = {'min': 6.0, 'max': 9.0}
    assert severity_for(7.0, watch, alarm) == 'ok'
    assert severity_for(6.4, watch, alarm) == 'watch'
    assert severity_for(5.9, watch, alarm) == 'alarm'
    assert severity_for(9.5, watch, alarm) == 'alarm'


def test_severity_bounds_are_inclusive_and_open_when_missing():
    assert severity_for(6.5, {'min': 6.5, 'max': 8.5}, {}) == 'ok'
    assert severity_for(8.5, {'min': 6.5, 'max': 8.5}, {}) == 'ok'
    assert severity_for(1000, {'min': 1}, None) == 'ok'
    assert severity_for(5, None, None) == 'ok'


def test_breach_direction():
    assert breach_direction(6.0, {'min': 6.5, 'max': 8.5}) == 'low'
    assert breach_direction(9.0, {'min': 6.5, 'max': 8.5}) == 'high'
    assert breach_direction(9.0, {'max': 8.5}) == 'high'


def test_format_band():
    assert format_band({'min': 6.5, 'max': 8.5}) == 'min 6.5, max 8.5'
    assert format_band({'max': 200}) == 'max 200'
    assert format_band({}) == 'n/a'


def test_evaluate_reading_watch_message():
    result = evaluate_reading('ph', 6.4)
    assert result['severity'] == 'watch'
    assert result['condition'] == 'low'
    assert result['message'] == 'pH: 6.40 (WATCH)  •  Watch limits min 6.5, max 8.5'
    assert result['actions']


def test_evaluate_reading_ok_has_no_condition():
    result = evaluate_reading('do', 2.0)
    assert result['severity'] == 'ok'
    assert result['message'] == 'DO: 2.0 mg/L (OK)'
    assert result['actions'] == []
    assert 'condition' not in result


def test_enabled_site_threshold_replaces_watch_band():
    threshold = SimpleNamespace(enabled=True, min_value=7.0, max_value=7.5)
    watch, alarm = effective_bands('ph', threshold)
    assert watch == {'min': 7.0, 'max': 7.5}
    assert alarm == {'min': 6.0, 'max': 9.0}
    assert evaluate_reading('ph', 7.8, threshold)['severity'] == 'watch'

    disabled = SimpleNamespace(enabled=False, min_value=7.0, max_value=7.5)
    assert evaluate_reading('ph', 7.8, disabled)['severity'] == 'ok'


def test_evaluate_readings_skips_unusable_values():
    results = evaluate_readings([
        ('ph', 7.0),
        ('ph', None),
        ('do', 'abc'),
        ('unknown', 1.0),
        ('orp', float('nan')),
        ('mlss', '5500'),
    ])
    assert [r['key'] for r in results] == ['ph', 'mlss']
    assert results[1]['severity'] == 'alarm'
