"""
Error Handlers for ExamDesk

Provides:
- Custom exception classes (one per failure category of the REST API)
- Consistent error response format
- Flask error handlers
"""

from flask import jsonify, request, current_app
from marshmallow import ValidationError as SchemaValidationError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
from typing import Optional, Dict, Any, List


class ExamDeskError(Exception):
    """Base exception class for ExamDesk."""

    def __init__(
        self,
        message: str,
        code: str = 'UNKNOWN_ERROR',
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for JSON response."""
        response = {
            'success': False,
            'message': self.message,
            'code': self.code,
        }
        if self.details:
            response['details'] = self.details
        return response


class ValidationError(ExamDeskError):
    """Input validation failed."""

    def __init__(self, message: str = 'Validation failed', errors: Dict = None):
        super().__init__(
            message=message,
            code='VALIDATION_ERROR',
            status_code=400,
            details={'errors': errors} if errors else None
        )


class AuthenticationError(ExamDeskError):
    """Missing, malformed, tampered or expired session token."""

    def __init__(self, message: str = 'Authentication required'):
        super().__init__(message=message, code='AUTHENTICATION_ERROR', status_code=401)


class InvalidCredentials(ExamDeskError):
    """Unknown roll number or wrong password."""

    def __init__(self, message: str = 'Invalid credentials'):
        super().__init__(message=message, code='INVALID_CREDENTIALS', status_code=401)


class PendingApproval(ExamDeskError):
    """Account exists but has not been approved by an admin."""

    def __init__(self, message: str = 'Account pending admin approval'):
        super().__init__(message=message, code='PENDING_APPROVAL', status_code=403)


class AuthorizationError(ExamDeskError):
    """Access denied (role or ownership mismatch)."""

    def __init__(self, message: str = 'Forbidden. Insufficient permissions.'):
        super().__init__(message=message, code='FORBIDDEN', status_code=403)


class TooEarly(ExamDeskError):
    """Answer key requested before the quiz window closed."""

    def __init__(self, message: str = 'Quiz results are only available after the quiz has ended'):
        super().__init__(message=message, code='TOO_EARLY', status_code=403)


class NotFoundError(ExamDeskError):
    """Resource not found."""

    def __init__(self, message: str = 'Resource not found', resource: str = None):
        super().__init__(
            message=message,
            code='NOT_FOUND',
            status_code=404,
            details={'resource': resource} if resource else None
        )


class ConflictError(ExamDeskError):
    """Duplicate identity or duplicate result."""

    def __init__(self, message: str = 'Conflict', code: str = 'CONFLICT', field: str = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details={'field': field} if field else None
        )


class AlreadySubmitted(ConflictError):
    """A result already exists for this (quiz, account) pair."""

    def __init__(self, message: str = 'You have already taken this quiz'):
        super().__init__(message=message, code='ALREADY_SUBMITTED')


class QuizWindowError(ExamDeskError):
    """The current time lies outside the quiz scheduling window."""

    NOT_STARTED = 'QUIZ_NOT_STARTED'
    ENDED = 'QUIZ_ENDED'

    def __init__(self, code: str):
        message = 'Quiz has not started yet' if code == self.NOT_STARTED else 'Quiz has already ended'
        super().__init__(message=message, code=code, status_code=400)


class BatchOperationError(ExamDeskError):
    """Some ids of a batch operation failed; the others were applied."""

    def __init__(self, action: str, succeeded: List[Any], failed: Dict[Any, str]):
        failed_ids = ', '.join(str(key) for key in failed)
        super().__init__(
            message=f'Failed to {action} user(s): {failed_ids}',
            code='BATCH_PARTIAL_FAILURE',
            status_code=400,
            details={
                'succeeded': list(succeeded),
                'failed': [{'id': key, 'reason': reason} for key, reason in failed.items()],
            }
        )


class UnexpectedError(ExamDeskError):
    """Unhandled exception surfaced as a 500."""

    def __init__(self, message: str = 'Internal server error'):
        super().__init__(message=message, code='UNEXPECTED_ERROR', status_code=500)


def error_response(
    message: str,
    code: str = 'ERROR',
    status_code: int = 400,
    details: Dict = None
) -> tuple:
    """Create a standardized error response."""
    response = {
        'success': False,
        'message': message,
        'code': code
    }
    if details:
        response['details'] = details

    return jsonify(response), status_code


def success_response(message: str = None, **payload) -> dict:
    """Create a standardized success response."""
    response = {'success': True}
    if message:
        response['message'] = message
    response.update(payload)
    return response


def load_or_raise(schema, data):
    """Load `data` with a marshmallow schema, raising the API ValidationError on failure."""
    try:
        return schema.load(data or {})
    except SchemaValidationError as exc:
        messages = exc.messages if isinstance(exc.messages, dict) else {'_schema': exc.messages}
        first_field = next(iter(messages), None)
        first_message = messages.get(first_field) if first_field else None
        if isinstance(first_message, list) and first_message:
            first_message = first_message[0]
        summary = f"{first_field}: {first_message}" if first_field and isinstance(first_message, str) else 'Validation failed'
        raise ValidationError(summary, errors=messages) from exc


def register_error_handlers(app):
    """Register error handlers with Flask app."""

    @app.errorhandler(ExamDeskError)
    def handle_examdesk_error(error):
        level = current_app.logger.error if error.status_code >= 500 else current_app.logger.warning
        level(f"{error.code}: {error.message} ({request.method} {request.path})")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(error):
        return error_response('Uploaded file is too large', 'VALIDATION_ERROR', 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if request.path.startswith('/api/'):
            code = 'NOT_FOUND' if error.code == 404 else 'HTTP_ERROR'
            message = 'Endpoint not found' if error.code == 404 else error.description
            return error_response(message, code, error.code)
        return error

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        current_app.logger.exception('Internal server error')
        return jsonify(UnexpectedError().to_dict()), 500
