"""
Environment Blueprint

Weather snapshots, odour incidents and sources, plume predictions and site maps.
"""

from flask import Blueprint

environment_bp = Blueprint('environment', __name__)

from waterops.environment import routes  # noqa: E402, F401
