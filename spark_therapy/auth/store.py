"""
Credential store backed by SQLAlchemy.

Fields that concurrent requests race on (failed-login counter, lock, refresh
token digest) are only ever changed through single UPDATE statements so the
database serializes them.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import ConflictException
from .models import User

logger = logging.getLogger(__name__)


class UserStore:
    """Persistence operations the authentication flow depends on."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def create(self, **fields: Any) -> User:
        """
        Insert a new user.

        Raises:
            ConflictException: If the email is taken (including a concurrent insert)
        """
        fields["email"] = fields["email"].strip().lower()
        user = User(**fields)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Concurrent registration lost for {fields['email']}")
            raise ConflictException("User already exists")
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        """Persist profile-level changes made on the instance."""
        if user.email:
            user.email = user.email.strip().lower()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictException("Email already in use")
        self.db.refresh(user)
        return user

    def _execute(self, stmt):
        return self.db.execute(stmt.execution_options(synchronize_session=False))

    def register_failed_login(self, user: User, max_attempts: int, lock_duration: timedelta) -> User:
        """
        Count one failed login and lock the account once ``max_attempts`` is reached.

        A lock that has already elapsed restarts the count at 1.
        """
        now = datetime.now(timezone.utc)
        lock_elapsed = (User.lock_until.is_not(None)) & (User.lock_until <= now)

        self._execute(
            update(User)
            .where(User.id == user.id)
            .values(
                failed_login_attempts=case(
                    (lock_elapsed, 1),
                    else_=User.failed_login_attempts + 1
                ),
                lock_until=case(
                    (lock_elapsed, None),
                    else_=User.lock_until
                )
            )
        )
        self._execute(
            update(User)
            .where(
                User.id == user.id,
                User.failed_login_attempts >= max_attempts,
                User.lock_until.is_(None)
            )
            .values(lock_until=now + lock_duration)
        )
        self.db.commit()
        self.db.refresh(user)
        return user

    def record_login(self, user: User, refresh_token_hash: str) -> User:
        """Reset lockout state and store the digest of the newly issued refresh token."""
        self._execute(
            update(User)
            .where(User.id == user.id)
            .values(
                failed_login_attempts=0,
                lock_until=None,
                last_login=datetime.now(timezone.utc),
                refresh_token_hash=refresh_token_hash
            )
        )
        self.db.commit()
        self.db.refresh(user)
        return user

    def rotate_refresh_token(self, user: User, presented_hash: str, new_hash: str) -> bool:
        """
        Compare-and-set the refresh digest.

        Returns:
            bool: False when another request rotated or cleared it first
        """
        result = self._execute(
            update(User)
            .where(User.id == user.id, User.refresh_token_hash == presented_hash)
            .values(refresh_token_hash=new_hash)
        )
        self.db.commit()
        self.db.refresh(user)
        return result.rowcount == 1

    def clear_refresh_token(self, user: User) -> User:
        self._execute(
            update(User)
            .where(User.id == user.id)
            .values(refresh_token_hash=None)
        )
        self.db.commit()
        self.db.refresh(user)
        return user

    def set_active(self, user: User, is_active: bool) -> User:
        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)
        return user
