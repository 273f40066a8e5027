# File: examdesk_app/modules/auth/identity.py
from flask import g, request
from flask_login import UserMixin

from examdesk_app.core.error_handlers import AuthenticationError
from .tokens import verify_token


class TokenIdentity(UserMixin):
    """The caller of a request, as described by its session token claims."""

    def __init__(self, claims: dict):
        self.claims = dict(claims)
        self.user_id = claims['user_id']
        self.roll_number = claims.get('roll_number')
        self.name = claims.get('name')
        self.role = claims['role']
        self.department = claims.get('department')
        self.section = claims.get('section')
        self.batch = claims.get('batch')

    def get_id(self):
        return str(self.user_id)

    def to_dict(self) -> dict:
        return {
            '_id': self.user_id,
            'rollNumber': self.roll_number,
            'name': self.name,
            'role': self.role,
            'department': self.department,
            'section': self.section,
            'batch': self.batch,
        }


def bearer_token_from_request():
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def load_identity_from_request(req):
    """Flask-Login request loader: build the caller from the bearer token, if valid."""
    token = bearer_token_from_request()
    if token is None:
        g.auth_error = 'Access denied. No token provided.'
        return None
    try:
        return TokenIdentity(verify_token(token))
    except AuthenticationError as exc:
        g.auth_error = exc.message
        return None


def handle_unauthorized():
    """Flask-Login unauthorized handler for the JSON API."""
    raise AuthenticationError(g.get('auth_error') or 'Authentication required')
