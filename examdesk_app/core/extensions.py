# File: examdesk_app/core/extensions.py
# Extension singletons, bound to an app in core/bootstrap.py

import sqlite3

from flask_cors import CORS
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

SQLITE_PRAGMAS = (
    'journal_mode=WAL',
    'synchronous=NORMAL',
    'busy_timeout=30000',
    'foreign_keys=ON',
)

db = SQLAlchemy()

# Request-loader mode only: callers are identified by bearer token, never by cookie session.
login_manager = LoginManager()

cors = CORS()


@event.listens_for(Engine, "connect")
def _apply_sqlite_pragmas(dbapi_connection, _connection_record):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(f"PRAGMA {pragma};")
    finally:
        cursor.close()


__all__ = ["db", "login_manager", "cors"]
