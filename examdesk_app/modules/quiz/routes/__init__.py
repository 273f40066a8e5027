from .. import quiz_bp
from . import api  # noqa: F401

__all__ = ['quiz_bp']
