"""
Functions Blueprint

Job-style POST endpoints for weather collection, plume generation and
email dispatch.
"""

from flask import Blueprint

functions_bp = Blueprint('functions', __name__)

from waterops.functions import routes  # noqa: E402, F401
