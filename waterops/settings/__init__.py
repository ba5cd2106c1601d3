"""
Settings Blueprint

Thresholds, parameter configuration, playbooks and calibration schedules.
"""

from flask import Blueprint

settings_bp = Blueprint('settings', __name__)

from waterops.settings import routes  # noqa: E402, F401
