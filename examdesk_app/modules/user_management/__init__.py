# File: examdesk_app/modules/user_management/__init__.py
from flask import Blueprint

user_management_bp = Blueprint('user_management', __name__)

module_metadata = {
    'name': 'User management',
    'category': 'System',
    'url_prefix': '/api',
    'enabled': True
}
