# __init__.py
"""
Application factory for the admissions backend.
Creates and configures the Flask application using the application factory pattern.
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from admissions.config import config_by_name
from admissions.extensions import init_extensions, db


def setup_logging(app):
    """
    Configure structured logging for the application.

    Args:
        app: Flask application instance
    """
    log_format = logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s'
    )
    level = logging.DEBUG if app.debug else logging.INFO

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(level)

    handlers = [console_handler]

    # File handler with rotation, only when a log directory is configured
    log_dir = app.config.get('LOG_DIR')
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'admissions.log'),
            maxBytes=1024 * 1024 * 10,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)

    app.logger.setLevel(level)
    for handler in handlers:
        app.logger.addHandler(handler)

    # Service loggers share the application's handlers
    for name in ('application_service', 'audit_service', 'auth_service', 'cohort_service',
                 'log_service', 'unit_of_work'):
        service_logger = logging.getLogger(name)
        service_logger.setLevel(level)
        for handler in handlers:
            service_logger.addHandler(handler)
        service_logger.propagate = False

    # Suppress excessive SQLAlchemy logging
    sa_logger = logging.getLogger('sqlalchemy.engine')
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


def register_blueprints(app):
    """
    Register all application blueprints.

    Args:
        app: Flask application instance
    """
    # Import blueprints here to avoid circular imports
    from .controllers.auth import auth_bp
    from .controllers.applications import applications_bp
    from .controllers.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(applications_bp, url_prefix='/api/applications')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    app.logger.info("All blueprints registered successfully")


def register_error_handlers(app):
    """
    Register global error handlers. Every error leaves as a JSON envelope.

    Args:
        app: Flask application instance
    """
    from admissions.utils.errors import AppError, ErrorCode
    from admissions.utils.responses import app_error, error

    @app.errorhandler(AppError)
    def handle_app_error(e):
        if e.status_code >= 500:
            app.logger.error(f"Application error: {e!r}")
        return app_error(e)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        code = {
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.FORBIDDEN,
            404: ErrorCode.NOT_FOUND,
        }.get(e.code, ErrorCode.VALIDATION_ERROR if e.code < 500 else ErrorCode.INTERNAL_ERROR)
        return error(e.code, code, e.description or e.name)

    @app.errorhandler(Exception)
    def handle_exception(e):
        app.logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        message = str(e) if app.debug else 'Internal server error'
        return error(500, ErrorCode.INTERNAL_ERROR, message)


def register_shell_context(app):
    """
    Register shell context for flask shell command.

    Args:
        app: Flask application instance
    """

    @app.shell_context_processor
    def make_shell_context():
        from admissions import models
        return {
            'db': db,
            'User': models.User,
            'Cohort': models.Cohort,
            'Applicant': models.Applicant,
            'Application': models.Application,
            'Enrollment': models.Enrollment,
            'ActivityLog': models.ActivityLog,
        }


def register_health_checks(app):
    """
    Register health check endpoints.

    Args:
        app: Flask application instance
    """

    @app.route('/health')
    def health_check():
        """Basic health check endpoint."""
        return jsonify({
            'status': 'ok',
            'timestamp': datetime.now().isoformat(),
            'version': app.config.get('VERSION', '1.0.0')
        })

    @app.route('/health/database')
    def database_health_check():
        """Database health check endpoint."""
        from admissions.extensions import check_database_health, get_connection_stats

        healthy, message = check_database_health()
        body = {
            'status': 'healthy' if healthy else 'unhealthy',
            'message': message,
            'stats': get_connection_stats(),
            'timestamp': datetime.now().isoformat()
        }
        return jsonify(body), 200 if healthy else 503


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name (str): Configuration name ('development', 'production', 'testing')

    Returns:
        Flask: Configured Flask application instance
    """
    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    config_name = config_name or os.environ.get('FLASK_ENV', 'development')
    config_class = config_by_name[config_name]
    if hasattr(config_class, 'validate'):
        config_class.validate()
    app.config.from_object(config_class)

    # Setup logging first; tests rely on propagation to pytest's capture
    if not app.testing:
        setup_logging(app)
    app.logger.info(f"Starting application with config: {config_name}")

    init_extensions(app)

    register_blueprints(app)
    register_error_handlers(app)
    register_shell_context(app)
    register_health_checks(app)

    # Register CLI commands
    from .cli import register_cli_commands
    register_cli_commands(app)

    app.logger.info("Application factory completed successfully")

    return app
