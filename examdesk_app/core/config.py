# File: examdesk_app/core/config.py
# Core Infrastructure Layer: application configuration

import os
from dotenv import load_dotenv

load_dotenv()

# examdesk_app/core/ -> project root is two levels up
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))

DATABASE_PATH = os.path.join(BASE_DIR, "database", "examdesk.db")


def _env_list(name, default):
    raw = os.environ.get(name)
    if not raw:
        return default
    return [part.strip() for part in raw.split(',') if part.strip()]


class Config:
    """ExamDesk application configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        # Fallback for development, env is preferred
        SECRET_KEY = 'dev-secret-key-replace-in-production'

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'connect_args': {'timeout': 30},
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session tokens
    TOKEN_MAX_AGE_SECONDS = int(os.environ.get('TOKEN_MAX_AGE_SECONDS', 3600))
    TOKEN_SALT = os.environ.get('TOKEN_SALT', 'examdesk-session')

    # Uploads
    UPLOAD_TEMP_FOLDER = os.path.join(BASE_DIR, 'uploads', 'tmp')
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024
    ALLOWED_IMAGE_EXTENSIONS = {'jpeg', 'jpg', 'png', 'gif'}

    MIN_PASSWORD_LENGTH = 6

    CORS_ORIGINS = _env_list('CORS_ORIGINS', ['http://localhost:5173', 'http://127.0.0.1:5173'])

    DEFAULT_ADMIN_ROLL_NUMBER = os.environ.get('DEFAULT_ADMIN_ROLL_NUMBER', 'admin')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'admin123')
    DEFAULT_ADMIN_NAME = 'System Administrator'
    DEFAULT_ADMIN_DEPARTMENT = 'Administration'

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(BASE_DIR, 'logs')
    LOG_TO_FILE = os.environ.get('LOG_TO_FILE', '1') not in ('0', 'false', 'False')
    LOG_JSON = os.environ.get('LOG_JSON', '0') in ('1', 'true', 'True')
