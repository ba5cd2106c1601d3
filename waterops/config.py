"""
Configuration settings for the WaterOps monitoring service
"""
import os


class Config:
    """Flask application configuration"""

    # Flask secret key for sessions
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-12345'

    # Database configuration
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'waterops.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Uploaded site maps
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(basedir, 'instance', 'site_maps')
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024
    ALLOWED_MAP_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp', 'svg'}

    # Open-Meteo (no key) feeds the weather snapshot job
    OPEN_METEO_BASE_URL = 'https://api.open-meteo.com/v1/forecast'
    # Pause between sites in the snapshot job, in seconds
    WEATHER_FETCH_DELAY = float(os.environ.get('WEATHER_FETCH_DELAY') or 0.2)

    # OpenWeatherMap serves on-demand lookups for given coordinates
    OPENWEATHERMAP_API_KEY = os.environ.get('OPENWEATHERMAP_API_KEY')
    OPENWEATHER_URL = 'https://api.openweathermap.org/data/2.5/weather'

    # Transactional email (Resend)
    RESEND_API_KEY = os.environ.get('RESEND_API_KEY')
    RESEND_API_URL = 'https://api.resend.com/emails'
    ALERT_EMAIL_FROM = os.environ.get('ALERT_EMAIL_FROM') or 'WaterOps Alerts <onboarding@resend.dev>'
    REMINDER_EMAIL_FROM = os.environ.get('REMINDER_EMAIL_FROM') or 'WaterOps Reminders <onboarding@resend.dev>'

    # Application settings
    DEFAULT_SITE_NAME = os.environ.get('DEFAULT_SITE_NAME') or 'Main Treatment Plant'
    DEFAULT_SITE_TIMEZONE = 'UTC'
    CALIBRATION_TOLERANCE_PCT = 10.0
    READINGS_WINDOW_DAYS = 30
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Admin Credentials (session-based, separate from operator auth)
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME') or 'admin'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'admin123'


class TestConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    WEATHER_FETCH_DELAY = 0
    RESEND_API_KEY = 'test-resend-key'
    OPENWEATHERMAP_API_KEY = 'test-owm-key'
