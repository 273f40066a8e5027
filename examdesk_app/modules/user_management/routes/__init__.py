from .. import user_management_bp
from . import api  # noqa: F401

__all__ = ['user_management_bp']
