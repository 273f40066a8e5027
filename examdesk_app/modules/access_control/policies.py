from typing import Dict, Any

# --- Constants: Roles ---
ROLE_STUDENT = 'student'
ROLE_STAFF = 'staff'
ROLE_ADMIN = 'admin'

# --- Constants: Permission Keys ---
CAN_MANAGE_USERS = 'can_manage_users'
CAN_AUTHOR_QUIZZES = 'can_author_quizzes'
CAN_VIEW_ALL_QUIZZES = 'can_view_all_quizzes'
CAN_TAKE_QUIZZES = 'can_take_quizzes'
CAN_EXPORT_RESULTS = 'can_export_results'

# --- Route allowlists ---
QUIZ_AUTHORS = (ROLE_STAFF, ROLE_ADMIN)
STUDENTS_ONLY = (ROLE_STUDENT,)

# --- Policy Matrix ---
ROLE_POLICIES: Dict[str, Dict[str, Any]] = {
    ROLE_ADMIN: {
        'permissions': {
            CAN_MANAGE_USERS: True,
            CAN_AUTHOR_QUIZZES: True,
            CAN_VIEW_ALL_QUIZZES: True,
            CAN_TAKE_QUIZZES: False,
            CAN_EXPORT_RESULTS: True,
        },
    },
    ROLE_STAFF: {
        'permissions': {
            CAN_MANAGE_USERS: False,
            CAN_AUTHOR_QUIZZES: True,
            CAN_VIEW_ALL_QUIZZES: False,  # own quizzes only
            CAN_TAKE_QUIZZES: False,
            CAN_EXPORT_RESULTS: True,
        },
    },
    ROLE_STUDENT: {
        'permissions': {
            CAN_MANAGE_USERS: False,
            CAN_AUTHOR_QUIZZES: False,
            CAN_VIEW_ALL_QUIZZES: False,
            CAN_TAKE_QUIZZES: True,
            CAN_EXPORT_RESULTS: False,
        },
    },
}


def get_role_policy(role: str) -> Dict[str, Any]:
    """Policy for `role`; unknown roles get no permissions."""
    return ROLE_POLICIES.get(role, {'permissions': {}})


def has_permission(identity, permission_key: str) -> bool:
    """Check a permission for a caller (anything with a `role` attribute)."""
    if identity is None:
        return False
    role = getattr(identity, 'role', None)
    return bool(get_role_policy(role)['permissions'].get(permission_key, False))
