"""
Flask Extensions

Admin authentication is session-based and kept apart from operator
authentication, which goes through Flask-Login.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

# Database instance
db = SQLAlchemy()

# Login manager for operator authentication (NOT for admin)
login_manager = LoginManager()
