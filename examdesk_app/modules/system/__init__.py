# File: examdesk_app/modules/system/__init__.py
from flask import Blueprint

system_bp = Blueprint('system', __name__)

module_metadata = {
    'name': 'System',
    'category': 'System',
    'url_prefix': '/api',
    'enabled': True
}

from . import routes  # noqa: E402,F401
