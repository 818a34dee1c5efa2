"""
ZimShelf - educational ebook sharing platform
Application Factory and initialization
"""
import os
import sys
import logging

import flask.cli
flask.cli.show_server_banner = lambda *args: None

from flask import Flask
import structlog

from zimshelf.auth import auth_blueprint, login_manager, init_admin
from zimshelf.cdn import create_storage_provider
from zimshelf.constants import BUILD_VERSION, ZIMSHELF_DB
from zimshelf.db import db, init_db
from zimshelf.exceptions import register_exception_handlers
from zimshelf.metrics import init_metrics
from zimshelf.middleware.maintenance import init_maintenance
from zimshelf.routes.admin import admin_bp
from zimshelf.routes.books import books_bp, files_bp
from zimshelf.routes.system import system_bp
from zimshelf.settings import load_settings, merge_settings, verify_settings
from zimshelf.utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, get_or_create_secret_key

# Multipart framing on top of the file itself
UPLOAD_BODY_SLACK = 1024 * 1024

# Logging configuration
formatter = ColoredFormatter(
    '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[handler]
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('main')

# Apply filter to hide date from http access logs
logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())


def create_app(config=None, settings=None):
    """
    Application factory.

    `config` overrides Flask config keys; `settings` replaces the YAML settings
    file (merged over the defaults), which keeps tests off the filesystem.
    """
    app_settings = merge_settings(settings) if settings is not None else load_settings()
    valid, errors = verify_settings(app_settings)
    if not valid:
        for error in errors:
            logger.error("invalid_setting", path=error["path"], error=error["error"])

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = app_settings["database"].get("uri") or ZIMSHELF_DB
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config["MAX_CONTENT_LENGTH"] = int(app_settings["uploads"]["max_size"]) + UPLOAD_BODY_SLACK
    app.config["ZIMSHELF_SETTINGS"] = app_settings
    app.config.update(config or {})
    if not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or get_or_create_secret_key()

    # Initialize components
    db.init_app(app)

    # Initialize login manager
    login_manager.init_app(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(auth_blueprint)
    app.register_blueprint(books_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(system_bp)

    # Initialize metrics
    init_metrics(app)

    # Maintenance lock for public API traffic
    init_maintenance(app)

    # CDN used by the upload pipeline
    app.extensions["zimshelf.cdn"] = create_storage_provider(app_settings["storage"])

    # Global initialization
    with app.app_context():
        init_db(app)
        init_admin(app_settings["admin"])

    logger.info("app_initialized", version=BUILD_VERSION, storage=app_settings["storage"].get("provider"))
    return app


if __name__ == '__main__':
    app = create_app()
    port = int(os.environ.get('PORT', 5000))
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f'Starting server on port {port}...')
    app.run(debug=False, use_reloader=False, host="0.0.0.0", port=port)
    logger.info('Shutting down server...')
