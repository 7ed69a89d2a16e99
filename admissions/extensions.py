# extensions.py
"""
Flask extensions initialization.
Extensions are created here without an app and bound in the application factory,
which keeps models and services free of circular imports.
"""

import logging
import threading
import time

from flask import current_app
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

# Initialize extensions without app binding
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()

# Connection monitoring
connection_stats = {
    'total_checks': 0,
    'failed_checks': 0,
    'last_check': 0,
    'healthy': True
}
connection_lock = threading.Lock()

logger = logging.getLogger(__name__)

SESSION_FACTORY_KEY = 'admissions_session_factory'


def get_session_factory(app=None):
    """
    Return the sessionmaker bound to the application's engine.

    Services receive this factory instead of reaching for a global session,
    so each unit of work opens its own session and transaction.
    Requires an application context when app is not given.
    """
    app = app or current_app._get_current_object()
    factory = app.extensions.get(SESSION_FACTORY_KEY)
    if factory is None:
        with app.app_context():
            factory = sessionmaker(bind=db.engine, expire_on_commit=False, autoflush=False)
        app.extensions[SESSION_FACTORY_KEY] = factory
    return factory


def get_connection_stats():
    """
    Get current database connection statistics.

    Returns:
        dict: Connection statistics
    """
    with connection_lock:
        return connection_stats.copy()


def check_database_health():
    """
    Check if the database connection is healthy.
    This function requires an active Flask application context.

    Returns:
        tuple: (bool, str) indicating health status and message
    """
    try:
        connection = db.engine.connect()
        try:
            connection.execute(text("SELECT 1")).fetchone()
        finally:
            connection.close()

        with connection_lock:
            connection_stats['total_checks'] += 1
            connection_stats['healthy'] = True
            connection_stats['last_check'] = time.time()

        return True, "Database connection is healthy"

    except Exception as e:
        logger.error(f"Database health check failed: {e}")

        with connection_lock:
            connection_stats['total_checks'] += 1
            connection_stats['failed_checks'] += 1
            connection_stats['healthy'] = False
            connection_stats['last_check'] = time.time()

        return False, f"Database connection failed: {str(e)}"


def init_extensions(app):
    """
    Initialize all extensions in dependency order.

    Args:
        app: Flask application instance
    """
    # Database first, other extensions depend on it
    db.init_app(app)
    migrate.init_app(app, db)

    login_manager.init_app(app)
    login_manager.session_protection = 'basic'

    @login_manager.user_loader
    def load_user(user_id):
        # Import here to avoid circular imports
        from admissions.models import User

        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        from admissions.utils.errors import AppError, ErrorCode
        raise AppError(401, ErrorCode.UNAUTHORIZED, 'Authentication required.')

    app.logger.info("Extensions initialized successfully")
