"""
Services Package

Exports the pure calculation services for easy importing.
"""

from waterops.services.parameters import PARAMETERS, get_parameter, parameters_by_category, default_thresholds, is_known_parameter
from waterops.services.evaluation import severity_for, evaluate_readings, breach_direction, alert_severity
from waterops.services.status import classify_trend, daily_status, weekly_summary, monthly_calendar
from waterops.services.stability import solar_elevation, insolation_class, stability_class, classify, describe_stability
from waterops.services.calibration import calibration_status, deviation_percent

__all__ = [
    'PARAMETERS',
    'get_parameter',
    'parameters_by_category',
    'default_thresholds',
    'is_known_parameter',
    'severity_for',
    'evaluate_readings',
    'breach_direction',
    'alert_severity',
    'classify_trend',
    'daily_status',
    'weekly_summary',
    'monthly_calendar',
    'solar_elevation',
    'insolation_class',
    'stability_class',
    'classify',
    'describe_stability',
    'calibration_status',
    'deviation_percent',
]
