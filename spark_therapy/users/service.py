"""
User administration: listing users and toggling account activation.
"""
import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..auth.models import User, UserRole
from ..auth.store import UserStore
from ..core.audit_service import create_audit_log
from ..exceptions import NotFoundException, ValidationException

logger = logging.getLogger(__name__)


def list_users_query(db: Session, role: Optional[UserRole] = None):
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == UserRole(role))
    return query.order_by(User.id)


def get_user(db: Session, user_id: int) -> User:
    user = UserStore(db).find_by_id(user_id)
    if user is None:
        raise NotFoundException("User")
    return user


async def set_user_active(
    db: Session,
    admin: User,
    user_id: int,
    active: bool,
    request: Optional[Request] = None
) -> User:
    """
    Activate or deactivate an account.

    A deactivated user keeps its stored refresh digest, but both the access
    gate and the refresh flow reject it.

    Raises:
        NotFoundException: Unknown user id
        ValidationException: An admin trying to deactivate itself
    """
    user = get_user(db, user_id)
    if not active and user.id == admin.id:
        raise ValidationException("You cannot deactivate your own account")

    user = UserStore(db).set_active(user, active)
    action = "USER_ACTIVATED" if active else "USER_DEACTIVATED"
    logger.info(f"Admin {admin.id} set is_active={active} on user {user.id}")
    await create_audit_log(db, action=action, user_id=admin.id, request=request, details={"target_user_id": user.id})
    return user
