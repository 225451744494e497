"""
User Model - Stores credentials and account state for every clinic user.

The role is fixed at registration; accounts are soft-deactivated through
``is_active`` and never hard-deleted.
"""
from datetime import datetime, timezone
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func

from ..database import Base


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the therapy clinic.

    Roles:
    - ADMIN: Clinic administrators with full access
    - THERAPIST: Therapists working with their assigned children
    - PARENT: Parents/guardians of children enrolled at the clinic
    """
    ADMIN = "admin"
    THERAPIST = "therapist"
    PARENT = "parent"


class User(Base):
    """
    User Model - Stores all user information in the system

    Fields:
    - id: Primary key for user identification
    - name: User's display name
    - email: Unique email address for login (stored lower-case)
    - password_hash: bcrypt hash (never store raw passwords)
    - role: admin, therapist or parent
    - is_active: False once an administrator deactivates the account
    - refresh_token_hash: SHA-256 digest of the single live refresh token
    - failed_login_attempts: Consecutive failed logins since the last success
    - lock_until: Login is refused until this moment
    - last_login: Timestamp of the last successful login
    - phone / specialization: Optional profile fields
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(
        Enum(UserRole, name="userrole", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.PARENT
    )
    is_active = Column(Boolean, nullable=False, default=True)
    refresh_token_hash = Column(String(64), nullable=True)
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    lock_until = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    phone = Column(String, nullable=True)
    specialization = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_locked(self) -> bool:
        """True while a lockout is in force."""
        if self.lock_until is None:
            return False
        return as_utc(self.lock_until) > datetime.now(timezone.utc)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
