"""
Admin Blueprint

Admin authentication is session-based and separate from operator
authentication.
"""

from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

from waterops.admin import routes  # noqa: E402, F401
