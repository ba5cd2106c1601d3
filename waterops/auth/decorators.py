"""
Auth Decorators
"""

from functools import wraps
from flask import jsonify
from flask_login import current_user


def supervisor_required(f):
    """Restrict a view to logged-in supervisors and admins.

    Apply beneath ``login_required`` so anonymous users are redirected first.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_supervisor:
            return jsonify({'error': 'Forbidden - supervisor or admin role required'}), 403
        return f(*args, **kwargs)
    return wrapper
