"""Account related database models."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from ..core.extensions import db
from ..utils.time_utils import isoformat_utc, utcnow


class User(db.Model):
    """Active (or pending) account."""

    __tablename__ = 'users'
    # Results keep bare user ids, so a retired account's id must never be handed out again.
    __table_args__ = {'sqlite_autoincrement': True}

    ROLE_STUDENT = 'student'
    ROLE_STAFF = 'staff'
    ROLE_ADMIN = 'admin'
    ROLES = (ROLE_STUDENT, ROLE_STAFF, ROLE_ADMIN)

    user_id = db.Column(db.Integer, primary_key=True)
    roll_number = db.Column(db.String(80), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), default=ROLE_STUDENT, nullable=False)
    department = db.Column(db.String(120))
    section = db.Column(db.String(50))
    batch = db.Column(db.String(50))
    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_staff(self) -> bool:
        return self.role == self.ROLE_STAFF

    def claims(self) -> dict[str, object]:
        """Identity claims embedded into session tokens."""
        return {
            'user_id': self.user_id,
            'roll_number': self.roll_number,
            'name': self.name,
            'role': self.role,
            'department': self.department,
            'section': self.section,
            'batch': self.batch,
        }

    def to_dict(self) -> dict[str, object]:
        return {
            'id': self.user_id,
            'rollNumber': self.roll_number,
            'name': self.name,
            'role': self.role,
            'department': self.department,
            'section': self.section,
            'batch': self.batch,
            'isApproved': self.is_approved,
            'createdAt': isoformat_utc(self.created_at),
        }


class RetiredUser(db.Model):
    """Soft-deleted snapshot of an account, waiting for restore or purge."""

    __tablename__ = 'retired_users'

    retired_id = db.Column(db.Integer, primary_key=True)
    former_user_id = db.Column(db.Integer)
    roll_number = db.Column(db.String(80), nullable=False, index=True)
    name = db.Column(db.String(200))
    role = db.Column(db.String(20))
    department = db.Column(db.String(120))
    section = db.Column(db.String(50))
    batch = db.Column(db.String(50))
    deleted_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    @classmethod
    def snapshot(cls, user: User) -> 'RetiredUser':
        """Copy the non-secret attributes of `user`."""
        return cls(
            former_user_id=user.user_id,
            roll_number=user.roll_number,
            name=user.name,
            role=user.role,
            department=user.department,
            section=user.section,
            batch=user.batch,
            deleted_at=utcnow(),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            'id': self.retired_id,
            'rollNumber': self.roll_number,
            'name': self.name,
            'role': self.role,
            'department': self.department,
            'section': self.section,
            'batch': self.batch,
            'deletedAt': isoformat_utc(self.deleted_at),
        }
