from .decorators import ensure_permission, require_permission, require_roles
from .policies import (
    QUIZ_AUTHORS,
    STUDENTS_ONLY,
    has_permission,
)

__all__ = [
    'require_roles',
    'require_permission',
    'ensure_permission',
    'has_permission',
    'QUIZ_AUTHORS',
    'STUDENTS_ONLY',
]
