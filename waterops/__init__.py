"""
WaterOps Monitor - Application Factory

This module provides the Flask application factory pattern for creating
and configuring the application instance.
"""

import logging
import os

from flask import Flask, jsonify
from waterops.extensions import db, login_manager
from waterops.config import Config

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use (default: Config)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'

    # Register blueprints
    from waterops.auth import auth_bp
    from waterops.admin import admin_bp
    from waterops.dashboard import dashboard_bp
    from waterops.settings import settings_bp
    from waterops.environment import environment_bp
    from waterops.functions import functions_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(settings_bp, url_prefix='/settings')
    app.register_blueprint(environment_bp, url_prefix='/environment')
    app.register_blueprint(functions_bp, url_prefix='/functions')

    # User loader for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        from waterops.models import User
        return db.session.get(User, int(user_id))

    from waterops.services.sites import SiteNotFound, InvalidSiteId

    @app.errorhandler(SiteNotFound)
    def site_not_found(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(InvalidSiteId)
    def invalid_site_id(e):
        return jsonify({'error': str(e)}), 400

    # Create database tables
    with app.app_context():
        if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') and \
                ':memory:' not in app.config['SQLALCHEMY_DATABASE_URI']:
            os.makedirs(os.path.dirname(app.config['SQLALCHEMY_DATABASE_URI'][len('sqlite:///'):]), exist_ok=True)
        os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
        db.create_all()
        _ensure_default_data(app)

    return app


def _ensure_default_data(app):
    """Ensure the default site exists."""
    from waterops.models import Site

    name = app.config['DEFAULT_SITE_NAME']
    if Site.query.filter_by(name=name).first():
        return
    try:
        db.session.add(Site(name=name, timezone=app.config.get('DEFAULT_SITE_TIMEZONE', 'UTC')))
        db.session.commit()
        logger.info('Created default site %s', name)
    except Exception as e:
        db.session.rollback()
        logger.error('Could not create default site: %s', e)
