from functools import wraps

from flask import current_app
from flask_login import current_user

from examdesk_app.core.error_handlers import AuthenticationError, AuthorizationError
from .policies import has_permission


def require_roles(*roles):
    """
    Route decorator enforcing a fixed role allowlist.
    Must be stacked under `login_required`.
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise AuthenticationError()
            if current_user.role not in allowed:
                current_app.logger.info(
                    f"Role '{current_user.role}' denied on {f.__name__} (allowed: {sorted(allowed)})"
                )
                raise AuthorizationError()
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def ensure_permission(identity, permission_key: str, message: str = None):
    """Raise AuthorizationError unless `identity` holds `permission_key`."""
    if not has_permission(identity, permission_key):
        raise AuthorizationError(message) if message else AuthorizationError()


def require_permission(permission_key: str):
    """Route decorator enforcing one entry of the role policy matrix."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise AuthenticationError()
            if not has_permission(current_user, permission_key):
                current_app.logger.info(f"Role '{current_user.role}' lacks {permission_key} on {f.__name__}")
                raise AuthorizationError()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
