from .. import results_bp
from . import api  # noqa: F401

__all__ = ['results_bp']
