"""
Models Package

Exports all models for easy importing.
"""

from waterops.models.site import Site, SiteMap, SiteMetricConfig
from waterops.models.user import User
from waterops.models.reading import Reading, Threshold
from waterops.models.alert import AlertEvent
from waterops.models.playbook import SitePlaybook
from waterops.models.calibration import CalibrationSchedule, CalibrationLog
from waterops.models.environment import WeatherSnapshot, OdourIncident, OdourSource, OdourPrediction
from waterops.models.notification import EmailRecipient, EmailLog

__all__ = [
    'Site', 'SiteMap', 'SiteMetricConfig', 'User', 'Reading', 'Threshold',
    'AlertEvent', 'SitePlaybook', 'CalibrationSchedule', 'CalibrationLog',
    'WeatherSnapshot', 'OdourIncident', 'OdourSource', 'OdourPrediction',
    'EmailRecipient', 'EmailLog',
]
