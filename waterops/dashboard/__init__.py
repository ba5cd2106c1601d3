"""
Dashboard Blueprint

Readings, daily status, summaries and alerts.
"""

from flask import Blueprint

dashboard_bp = Blueprint('dashboard', __name__)

from waterops.dashboard import routes  # noqa: E402, F401
