"""
Admin Decorator

Admin authentication is session-based and separate from operator
authentication.
"""

from functools import wraps
from flask import session, redirect, url_for


def admin_required(f):
    """Decorator to ensure the request is from an authenticated admin.

    Only ``session['is_admin']`` is checked; an operator logged in through
    Flask-Login is not an admin. Unauthenticated requests are sent to
    /admin/login.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not session.get('is_admin'):
            return redirect(url_for('admin.admin_login'))
        return f(*args, **kwargs)
    return wrapper
