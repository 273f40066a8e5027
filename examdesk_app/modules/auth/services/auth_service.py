"""
Auth Service - Core authentication logic.

Handles registration, credential verification and session tokens.
Decouples DB logic from Routes.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from examdesk_app.core.error_handlers import (
    ConflictError,
    InvalidCredentials,
    PendingApproval,
    ValidationError,
)
from examdesk_app.core.extensions import db
from examdesk_app.core.signals import user_registered
from examdesk_app.models import User
from ..tokens import issue_token, verify_token


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class AuthService:
    """Service for Authentication related operations."""

    @staticmethod
    def check_password_length(password: str) -> None:
        minimum = current_app.config.get('MIN_PASSWORD_LENGTH', 6)
        if not password or len(password) < minimum:
            raise ValidationError(
                f'Password must be at least {minimum} characters long',
                errors={'password': [f'Minimum length is {minimum}']},
            )

    @staticmethod
    def roll_number_taken(roll_number: str, exclude_user_id: int = None) -> bool:
        query = User.query.filter(User.roll_number == roll_number)
        if exclude_user_id is not None:
            query = query.filter(User.user_id != exclude_user_id)
        return db.session.query(query.exists()).scalar()

    @classmethod
    def create_account(cls, data: dict, approved: bool) -> User:
        """
        Insert a new account.

        Raises:
            ValidationError: password too short.
            ConflictError: roll number already in use.
        """
        cls.check_password_length(data['password'])
        roll_number = data['roll_number']
        if cls.roll_number_taken(roll_number):
            raise ConflictError('User already exists with this roll number', field='rollNumber')

        role = data.get('role') or User.ROLE_STUDENT
        user = User(
            name=data['name'],
            roll_number=roll_number,
            role=role,
            department=_blank_to_none(data.get('department')),
            section=None if role == User.ROLE_STAFF else _blank_to_none(data.get('section')),
            batch=None if role == User.ROLE_STAFF else _blank_to_none(data.get('batch')),
            is_approved=approved,
        )
        user.set_password(data['password'])
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('User already exists with this roll number', field='rollNumber')
        return user

    @classmethod
    def register_user(cls, data: dict) -> User:
        """
        Self-service registration. Only admin registrations are approved
        immediately; everyone else waits for an admin.
        """
        approved = data.get('role') == User.ROLE_ADMIN
        user = cls.create_account(data, approved=approved)

        current_app.logger.info(f"User registered: {user.roll_number} ({user.user_id}), role={user.role}")
        user_registered.send(current_app._get_current_object(), user=user)
        return user

    @staticmethod
    def authenticate_user(roll_number: str, password: str) -> User:
        """
        Verify credentials.

        Raises:
            InvalidCredentials: unknown roll number or wrong password.
            PendingApproval: correct credentials, account not yet approved.
        """
        user = User.query.filter_by(roll_number=roll_number).first()
        if user is None or not user.check_password(password):
            raise InvalidCredentials()
        if not user.is_approved:
            raise PendingApproval()
        return user

    @classmethod
    def login(cls, roll_number: str, password: str) -> tuple[User, str]:
        user = cls.authenticate_user(roll_number, password)
        token = issue_token(user.claims())
        current_app.logger.info(f"Login: {user.roll_number} ({user.role})")
        return user, token

    @staticmethod
    def validate_session(token: str) -> dict:
        """Claims of a valid token; AuthenticationError otherwise."""
        return verify_token(token)
