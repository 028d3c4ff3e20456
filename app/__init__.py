"""Flask application factory."""
import logging
import os
from flask import Flask
from config import config

from .extensions import db, login_manager, migrate, csrf


def create_app(config_name='default'):
    """Create and configure the Flask application.

    Parameters
    ----------
    config_name : str
        Configuration name: 'development', 'production', 'testing'

    Returns
    -------
    Flask
        Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Ensure folders exist
    os.makedirs(app.instance_path, exist_ok=True)
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    os.makedirs(app.config['REPORTS_FOLDER'], exist_ok=True)

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)

    # Import all models for migrations and db.create_all()
    from . import models  # noqa: F401

    # Configure login
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    # Template helpers
    from .services.certificate_service import format_value
    app.jinja_env.filters['num'] = format_value

    # Register blueprints
    from .main import main_bp
    from .auth import auth_bp
    from .admin import admin_bp
    from .samples import samples_bp
    from .registers import registers_bp
    from .certificates import certificates_bp
    from .projects import projects_bp
    from .assets import assets_bp
    from .settings import settings_bp
    from .finance import finance_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(samples_bp, url_prefix='/samples')
    app.register_blueprint(registers_bp, url_prefix='/registers')
    app.register_blueprint(certificates_bp, url_prefix='/certificates')
    app.register_blueprint(projects_bp, url_prefix='/projects')
    app.register_blueprint(assets_bp, url_prefix='/assets')
    app.register_blueprint(settings_bp, url_prefix='/settings')
    app.register_blueprint(finance_bp, url_prefix='/finance')

    # Create database tables in development
    if app.config.get('DEBUG'):
        with app.app_context():
            db.create_all()

    app.logger.info('Lab register started with %s configuration', config_name)
    return app
