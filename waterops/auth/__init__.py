"""
Auth Blueprint

Operator authentication using Flask-Login.
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from waterops.auth import routes  # noqa: E402, F401
