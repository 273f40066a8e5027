"""Python client for the ExamDesk API: session, API calls, role views and quiz sessions."""

from .api_client import ApiClient, ApiError, SessionExpired, TransportError
from .quiz_session import (
    AnswersLocked,
    IncompleteSubmission,
    InvalidTransition,
    NavigationPolicy,
    QuizSession,
    RefusalReason,
    SessionPresenter,
    SessionState,
    ViolationPolicy,
)
from .session import AuthSession
from .views import AdminView, StaffView, StudentView, ViewNotAllowed, dispatch, require_view, view_for

__all__ = [
    "ApiClient",
    "ApiError",
    "SessionExpired",
    "TransportError",
    "AuthSession",
    "QuizSession",
    "SessionState",
    "RefusalReason",
    "NavigationPolicy",
    "ViolationPolicy",
    "SessionPresenter",
    "InvalidTransition",
    "IncompleteSubmission",
    "AnswersLocked",
    "StudentView",
    "StaffView",
    "AdminView",
    "ViewNotAllowed",
    "view_for",
    "require_view",
    "dispatch",
]
