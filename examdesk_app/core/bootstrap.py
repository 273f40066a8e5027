"""Bootstrap helpers for configuring the Flask application."""

from __future__ import annotations

import os

from flask import Flask
from sqlalchemy.engine import make_url

from .extensions import cors, db, login_manager
from .logging_config import setup_logging
from .module_registry import register_default_modules


def configure_logging(app: Flask) -> None:
    """Route the app logger through the shared ExamDesk handlers."""

    setup_logging(
        app,
        log_level=app.config.get('LOG_LEVEL', 'INFO'),
        log_dir=app.config.get('LOG_DIR'),
        json_format=app.config.get('LOG_JSON', False),
        to_file=app.config.get('LOG_TO_FILE', True),
    )


def register_extensions(app: Flask) -> None:
    """Initialize shared extensions with the Flask app instance."""

    from ..modules.auth.identity import handle_unauthorized, load_identity_from_request

    db.init_app(app)

    login_manager.init_app(app)
    login_manager.request_loader(load_identity_from_request)
    login_manager.unauthorized_handler(handle_unauthorized)

    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', [])}})


def register_blueprints(app: Flask) -> None:
    """Register all default blueprints with the app."""

    register_default_modules(app)


def register_events(app: Flask) -> None:
    """Connect the audit subscribers of every module."""

    from ..modules.results.events import register_events as register_result_events
    from ..modules.user_management.events import register_events as register_account_events

    register_account_events()
    register_result_events()
    app.logger.debug("Event subscribers connected.")


def _ensure_sqlite_directory(uri: str) -> None:
    url = make_url(uri)
    if url.get_backend_name() != 'sqlite' or not url.database or url.database == ':memory:':
        return
    directory = os.path.dirname(os.path.abspath(url.database))
    os.makedirs(directory, exist_ok=True)


def initialize_database(app: Flask) -> None:
    """Create database tables and ensure the default admin exists."""

    from ..models import User

    _ensure_sqlite_directory(app.config['SQLALCHEMY_DATABASE_URI'])
    db.create_all()

    roll_number = app.config.get('DEFAULT_ADMIN_ROLL_NUMBER', 'admin')
    admin_user = User.query.filter(
        (User.role == User.ROLE_ADMIN) | (User.roll_number == roll_number)
    ).first()
    if admin_user is None:
        admin = User(
            roll_number=roll_number,
            name=app.config.get('DEFAULT_ADMIN_NAME', 'System Administrator'),
            role=User.ROLE_ADMIN,
            department=app.config.get('DEFAULT_ADMIN_DEPARTMENT'),
            is_approved=True,
        )
        admin.set_password(app.config['DEFAULT_ADMIN_PASSWORD'])
        db.session.add(admin)
        db.session.commit()
        app.logger.info(f"Default admin account created (roll number '{roll_number}').")
    else:
        app.logger.info("Existing admin account found, skipping default admin creation.")
