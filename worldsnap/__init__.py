import os
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask
from flask.logging import default_handler


LOG_FILENAME = 'worldsnap.log'
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 10

# Handlers installed on the root logger by the last configure_logging call
_log_handlers = []


def configure_logging(app):
    """
    Configure application logging.

    Console and rotating file handlers are attached to the root logger
    only. app.logger, the backup engine and APScheduler propagate there,
    so every record is written once. A later call (another app in the same
    process) closes and replaces the handlers of the previous one.
    """
    log_dir = app.config['LOG_DIR']
    os.makedirs(log_dir, exist_ok=True)

    log_level = logging.DEBUG if app.config.get('DEBUG', False) else logging.INFO

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    ))

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, LOG_FILENAME),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT
    )
    file_handler.setFormatter(logging.Formatter(
        '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
    ))

    root_logger = logging.getLogger()
    while _log_handlers:
        handler = _log_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    for handler in (console_handler, file_handler):
        handler.setLevel(log_level)
        root_logger.addHandler(handler)
        _log_handlers.append(handler)
    root_logger.setLevel(log_level)

    # Flask's own stderr handler would print app.logger records a second time
    app.logger.removeHandler(default_handler)
    app.logger.setLevel(log_level)

    app.logger.info(f"Logging configured (level: {logging.getLevelName(log_level)})")


def create_app(config_name=None, overrides=None):
    """Flask application factory"""

    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'production')

    from worldsnap.config import config
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    # Configure logging
    configure_logging(app)

    # Register blueprints
    from worldsnap.routes import backup_routes, dashboard_routes
    app.register_blueprint(backup_routes.bp)
    app.register_blueprint(dashboard_routes.bp)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy'}, 200

    app.logger.info(
        f"Backing up {', '.join(app.config['WORLDS']) or 'no worlds'} "
        f"to {app.config['BACKUP_DIR']} (keep {app.config['BACKUP_RETENTION']})"
    )

    # Initialize and start scheduler (only in designated worker or development child process)
    from worldsnap.scheduler import init_scheduler, start_scheduler, stop_scheduler
    import atexit

    if not app.config.get('SCHEDULER_ENABLED', True):
        app.logger.info("Scheduler disabled by configuration")
        return app

    if app.config.get('BACKUP_INTERVAL_MINUTES', 0) <= 0:
        app.logger.info("No backup interval configured, scheduled backups disabled")
        return app

    # Determine if this process should initialize the scheduler
    is_reloader_child = os.environ.get('WERKZEUG_RUN_MAIN') == 'true'
    is_development = app.config.get('DEBUG', False)
    is_scheduler_worker = os.environ.get('SCHEDULER_WORKER', 'true').lower() == 'true'

    # Scheduler initialization logic:
    # - Development mode: Only in Flask reloader child process (not parent)
    # - Production mode: Only in designated scheduler worker (SCHEDULER_WORKER=true)
    if is_development:
        should_init_scheduler = is_reloader_child
        app.logger.info(f"Development mode: is_reloader_child={is_reloader_child}")
    else:
        should_init_scheduler = is_scheduler_worker
        app.logger.info(f"Production mode: is_scheduler_worker={is_scheduler_worker}")

    if should_init_scheduler:
        app.logger.info("Initializing scheduler in this process...")
        init_scheduler(app)
        start_scheduler()

        # Register cleanup function to stop scheduler on app shutdown
        atexit.register(stop_scheduler)
        app.logger.info("Scheduler initialized and started successfully")
    else:
        app.logger.info("Scheduler initialization skipped in this process (not designated scheduler worker)")

    return app
