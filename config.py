"""Flask application configuration."""
import os
from pathlib import Path

basedir = Path(__file__).parent.absolute()


def _get_database_url():
    """Get database URL, fixing postgres:// -> postgresql:// if needed."""
    url = os.environ.get('DATABASE_URL')
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration."""
    # Secret key for session management (change in production!)
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database
    SQLALCHEMY_DATABASE_URI = _get_database_url() or \
        f"sqlite:///{basedir / 'instance' / 'labregister.db'}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Signature uploads (inside static folder for web access)
    UPLOAD_FOLDER = basedir / 'app' / 'static' / 'uploads'
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5 MB max upload
    ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif'}

    # Certificate documents output
    REPORTS_FOLDER = basedir / 'reports'

    # Laboratory rules
    VAT_RATE = float(os.environ.get('LAB_VAT_RATE', 0.18))
    INVOICE_DUE_DAYS = int(os.environ.get('LAB_INVOICE_DUE_DAYS', 30))
    QUOTE_VALIDITY_DAYS = int(os.environ.get('LAB_QUOTE_VALIDITY_DAYS', 30))
    DUE_SOON_DAYS = int(os.environ.get('LAB_DUE_SOON_DAYS', 30))
    REPEATABILITY_THRESHOLD = float(os.environ.get('LAB_REPEATABILITY_THRESHOLD', 9))
    DEFAULT_FACILITY_TEMPERATURE = 24

    # Session
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    # In production, set SECRET_KEY via environment variable


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
