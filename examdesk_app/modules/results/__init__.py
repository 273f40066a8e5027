# File: examdesk_app/modules/results/__init__.py
from flask import Blueprint

results_bp = Blueprint('results', __name__)

module_metadata = {
    'name': 'Scoring & results',
    'category': 'Assessment',
    'url_prefix': '/api',
    'enabled': True
}
