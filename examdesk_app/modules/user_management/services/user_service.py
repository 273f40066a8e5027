import secrets
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from examdesk_app.core.error_handlers import (
    BatchOperationError,
    ConflictError,
    ExamDeskError,
    NotFoundError,
    ValidationError,
)
from examdesk_app.core.extensions import db
from examdesk_app.core.signals import user_purged, user_restored, user_retired, users_approved
from examdesk_app.models import RetiredUser, User
from examdesk_app.modules.auth.services.auth_service import AuthService
from examdesk_app.modules.auth.tokens import issue_token
from examdesk_app.utils.search import apply_account_filters


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class UserService:
    """Service layer for the account lifecycle (approval, retirement, restore)."""

    # --- Listings ---

    @staticmethod
    def list_pending(filters: Optional[Dict[str, Any]] = None) -> List[User]:
        query = apply_account_filters(User.query.filter(User.is_approved.is_(False)), User, filters)
        return query.order_by(User.user_id.asc()).all()

    @staticmethod
    def list_active(filters: Optional[Dict[str, Any]] = None) -> List[User]:
        query = apply_account_filters(User.query.filter(User.is_approved.is_(True)), User, filters)
        return query.order_by(User.user_id.asc()).all()

    @staticmethod
    def list_retired(filters: Optional[Dict[str, Any]] = None) -> List[RetiredUser]:
        query = apply_account_filters(RetiredUser.query, RetiredUser, filters)
        return query.order_by(RetiredUser.deleted_at.desc(), RetiredUser.retired_id.desc()).all()

    # --- Approval ---

    @staticmethod
    def approve_users(user_ids: Iterable[int]) -> int:
        """
        Approve every pending account among `user_ids`.

        Returns the number of accounts whose flag actually changed; already
        approved accounts count as zero. Raises NotFoundError only when none
        of the ids names an existing account.
        """
        ids = sorted(set(user_ids))
        matched = User.query.filter(User.user_id.in_(ids)).all()
        if not matched:
            raise NotFoundError('No users found to approve', resource='user')

        pending = [user for user in matched if not user.is_approved]
        for user in pending:
            user.is_approved = True
        db.session.commit()

        approved_ids = [user.user_id for user in pending]
        current_app.logger.info(f"Approved {len(approved_ids)} user(s): {approved_ids}")
        users_approved.send(
            current_app._get_current_object(), user_ids=approved_ids, approved_count=len(approved_ids)
        )
        return len(approved_ids)

    # --- Retirement (soft delete) ---

    @staticmethod
    def retire_user(user_id: int, acting_user_id: Optional[int] = None) -> RetiredUser:
        """Snapshot the account into the retired table and remove it, in one transaction."""
        if acting_user_id is not None and user_id == acting_user_id:
            raise ValidationError('You cannot delete your own account')

        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User not found', resource='user')

        retired = RetiredUser.snapshot(user)
        db.session.add(retired)
        db.session.delete(user)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(f"User retired: {retired.roll_number} (former id {user_id})")
        user_retired.send(current_app._get_current_object(), retired=retired, former_user_id=user_id)
        return retired

    @classmethod
    def retire_users(cls, user_ids: Iterable[int], acting_user_id: Optional[int] = None) -> List[RetiredUser]:
        """
        Retire each id independently. Ids that already went through stay
        retired when a later one fails; failures are reported together.
        """
        retired: List[RetiredUser] = []
        failed: Dict[int, str] = {}
        for user_id in dict.fromkeys(user_ids):
            try:
                retired.append(cls.retire_user(user_id, acting_user_id=acting_user_id))
            except ExamDeskError as exc:
                failed[user_id] = exc.message

        if failed:
            current_app.logger.warning(f"Batch delete partially failed: {failed}")
            raise BatchOperationError(
                'delete',
                succeeded=[item.former_user_id for item in retired],
                failed=failed,
            )
        return retired

    @staticmethod
    def restore_user(retired_id: int) -> User:
        """
        Re-create an approved account from a retired snapshot.

        The restored account receives a random password that nobody knows;
        an admin must reset it before the owner can log in.
        """
        retired = db.session.get(RetiredUser, retired_id)
        if retired is None:
            raise NotFoundError('Deleted user record not found', resource='retired_user')

        if AuthService.roll_number_taken(retired.roll_number):
            raise ConflictError('User with this roll number already exists', field='rollNumber')

        user = User(
            name=retired.name,
            roll_number=retired.roll_number,
            role=retired.role or User.ROLE_STUDENT,
            department=retired.department,
            section=retired.section,
            batch=retired.batch,
            is_approved=True,
        )
        user.set_password(secrets.token_urlsafe(24))
        db.session.add(user)
        db.session.delete(retired)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('User with this roll number already exists', field='rollNumber')

        current_app.logger.info(f"User restored: {user.roll_number} ({user.user_id})")
        user_restored.send(current_app._get_current_object(), user=user, retired_id=retired_id)
        return user

    @staticmethod
    def purge_retired(retired_id: int) -> Dict[str, Any]:
        """Remove a retired snapshot for good. Returns the snapshot as it was."""
        retired = db.session.get(RetiredUser, retired_id)
        if retired is None:
            raise NotFoundError('Deleted user record not found', resource='retired_user')

        snapshot = retired.to_dict()
        db.session.delete(retired)
        db.session.commit()

        current_app.logger.info(f"Retired user purged: {snapshot['rollNumber']} ({retired_id})")
        user_purged.send(current_app._get_current_object(), retired_id=retired_id, roll_number=snapshot['rollNumber'])
        return snapshot

    # --- Credentials & profile ---

    @staticmethod
    def reset_password(user_id: int, new_password: str) -> User:
        """Admin-initiated password reset."""
        AuthService.check_password_length(new_password)
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User not found', resource='user')

        user.set_password(new_password)
        db.session.commit()
        current_app.logger.info(f"Password reset by admin for {user.roll_number}")
        return user

    @staticmethod
    def create_staff(data: Dict[str, Any]) -> User:
        user = AuthService.create_account({**data, 'role': User.ROLE_STAFF}, approved=True)
        current_app.logger.info(f"Staff account created: {user.roll_number} ({user.user_id})")
        return user

    @staticmethod
    def update_profile(user_id: int, patch: Dict[str, Any]) -> Tuple[User, Optional[str]]:
        """
        Self-service profile update, committed as a single transaction.

        Returns the updated account and a fresh session token when the
        password or any claim embedded in the old token changed.
        """
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFoundError('User not found', resource='user')

        new_password = patch.get('new_password')
        if new_password is not None and not new_password.strip():
            new_password = None
        if new_password:
            AuthService.check_password_length(new_password)

        claims_before = user.claims()
        try:
            roll_number = _blank_to_none(patch.get('roll_number'))
            if roll_number and roll_number != user.roll_number:
                if AuthService.roll_number_taken(roll_number, exclude_user_id=user.user_id):
                    raise ConflictError('Roll number already in use', field='rollNumber')
                user.roll_number = roll_number

            if _blank_to_none(patch.get('name')):
                user.name = patch['name'].strip()
            if _blank_to_none(patch.get('department')):
                user.department = patch['department'].strip()

            if not user.is_staff:
                if 'section' in patch:
                    user.section = _blank_to_none(patch['section'])
                if 'batch' in patch:
                    user.batch = _blank_to_none(patch['batch'])

            if new_password:
                user.set_password(new_password)

            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Roll number already in use', field='rollNumber')
        except Exception:
            db.session.rollback()
            raise

        token = None
        if new_password or user.claims() != claims_before:
            token = issue_token(user.claims())
        current_app.logger.info(
            f"Profile updated: {user.roll_number} (password {'changed' if new_password else 'unchanged'})"
        )
        return user, token
