# File: examdesk_app/modules/quiz/__init__.py
from flask import Blueprint

quiz_bp = Blueprint('quiz', __name__)

module_metadata = {
    'name': 'Quiz authoring',
    'category': 'Assessment',
    'url_prefix': '/api',
    'enabled': True
}
