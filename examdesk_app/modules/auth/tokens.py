# File: examdesk_app/modules/auth/tokens.py
"""
Stateless session tokens.

A token is the itsdangerous timed signature of the account's identity
claims. Nothing is stored server-side, so a token stays valid until it
expires; logout is the client discarding it.
"""
from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from examdesk_app.core.error_handlers import AuthenticationError

CLAIM_KEYS = ('user_id', 'roll_number', 'name', 'role', 'department', 'section', 'batch')


def get_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(
        current_app.config['SECRET_KEY'],
        salt=current_app.config.get('TOKEN_SALT', 'examdesk-session'),
    )


def issue_token(claims: dict) -> str:
    """Sign the identity claims of an account."""
    payload = {key: claims.get(key) for key in CLAIM_KEYS}
    return get_serializer().dumps(payload)


def verify_token(token: str) -> dict:
    """
    Return the embedded claims of a valid token.

    Raises:
        AuthenticationError: bad signature, malformed payload or expired token.
    """
    if not token:
        raise AuthenticationError('Access denied. No token provided.')
    max_age = current_app.config.get('TOKEN_MAX_AGE_SECONDS', 3600)
    try:
        claims = get_serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        raise AuthenticationError('Session expired. Please login again.')
    except BadSignature:
        raise AuthenticationError('Invalid token')

    if not isinstance(claims, dict) or claims.get('user_id') is None or not claims.get('role'):
        raise AuthenticationError('Invalid token')
    return claims
