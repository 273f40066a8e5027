from .. import auth_bp
from . import api  # noqa: F401

__all__ = ['auth_bp']
