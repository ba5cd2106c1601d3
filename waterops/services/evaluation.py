"""
Reading Evaluation Services

Severity classification of readings against watch and alarm bands.
"""

import math

from waterops.services.parameters import PARAMETERS

SEVERITY_TO_ALERT = {'alarm': 'critical', 'watch': 'warning'}


def _in_band(value, band):
    band = band or {}
    low = band.get('min')
    high = band.get('max')
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def severity_for(value, watch=None, alarm=None):
    """Classify a value as 'ok', 'watch' or 'alarm'.

    Alarm bounds are checked first. Bounds are inclusive and a missing
    bound leaves that side open.
    """
    if not _in_band(value, alarm):
        return 'alarm'
    if not _in_band(value, watch):
        return 'watch'
    return 'ok'


def breach_direction(value, band):
    """'low' when the value sits under the band minimum, otherwise 'high'."""
    low = (band or {}).get('min')
    if low is not None and value < low:
        return 'low'
    return 'high'


def alert_severity(severity):
    return SEVERITY_TO_ALERT.get(severity)


def format_band(band):
    if not band:
        return 'n/a'
    parts = []
    if band.get('min') is not None:
        parts.append(f"min {band['min']:g}")
    if band.get('max') is not None:
        parts.append(f"max {band['max']:g}")
    return ', '.join(parts) if parts else 'n/a'


def effective_bands(key, threshold=None):
    """Watch/alarm bands for a parameter at a site.

    An enabled site threshold replaces the catalog watch band; the alarm
    band always comes from the catalog.
    """
    param = PARAMETERS[key]
    watch = dict(param.get('watch') or {})
    if threshold is not None and threshold.enabled:
        watch = {'min': threshold.min_value, 'max': threshold.max_value}
    return watch, dict(param.get('alarm') or {})


def evaluate_reading(key, value, threshold=None):
    """Evaluate one value, returning severity, message and suggested actions."""
    param = PARAMETERS[key]
    watch, alarm = effective_bands(key, threshold)
    severity = severity_for(value, watch, alarm)

    unit = f" {param['unit']}" if param['unit'] else ''
    base = f"{param['label']}: {value:.{param['decimals']}f}{unit}"

    if severity == 'ok':
        return {'key': key, 'severity': severity, 'message': f'{base} (OK)', 'actions': []}

    if severity == 'watch':
        band = f'Watch limits {format_band(watch)}'
    else:
        band = f'Alarm limits {format_band(alarm)}'

    return {
        'key': key,
        'severity': severity,
        'message': f'{base} ({severity.upper()})  •  {band}',
        'actions': list(param['actions'].get(severity, [])),
        'condition': breach_direction(value, watch),
    }


def evaluate_readings(readings, thresholds=None):
    """Evaluate (key, value) pairs, skipping missing and non-finite values."""
    thresholds = thresholds or {}
    results = []
    for key, value in readings:
        if value is None or key not in PARAMETERS:
            continue
        try:
            value = float(value)
        except (TypeError, ValueError):
            continue
        if not math.isfinite(value):
            continue
        results.append(evaluate_reading(key, value, thresholds.get(key)))
    return results
