"""
Bootstrap utilities for first admin creation.

Admin self-registration needs the shared secret; on a fresh database the first
admin can instead be created from BOOTSTRAP_ADMIN_EMAIL / BOOTSTRAP_ADMIN_PASSWORD.
"""
import logging

from sqlalchemy.orm import Session

from ..auth.models import User, UserRole
from ..auth.store import UserStore
from ..exceptions import ConflictException
from ..config import settings
from .security import hash_password

logger = logging.getLogger(__name__)


def admin_exists(db: Session) -> bool:
    """
    Check if any admin user exists in the database.

    Args:
        db: Database session

    Returns:
        bool: True if at least one admin exists, False otherwise
    """
    return db.query(User).filter(User.role == UserRole.ADMIN).count() > 0


def create_bootstrap_admin(db: Session) -> bool:
    """
    Create the first admin user from configuration.

    Returns:
        bool: True if admin was created, False otherwise
    """
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        logger.warning("Bootstrap admin credentials not provided in environment variables")
        return False

    try:
        admin = UserStore(db).create(
            name="System Administrator",
            email=settings.bootstrap_admin_email,
            password_hash=hash_password(settings.bootstrap_admin_password),
            role=UserRole.ADMIN,
            is_active=True
        )
    except ConflictException:
        logger.warning(f"Bootstrap failed: Email {settings.bootstrap_admin_email} already exists")
        return False

    logger.info(f"Bootstrap admin created: {admin.email} (ID: {admin.id})")
    return True


def bootstrap_admin_if_needed(db: Session) -> None:
    """
    Create the bootstrap admin when the database has no admin yet.
    Called once during application startup.
    """
    if admin_exists(db):
        logger.info("Admin users found. Bootstrap not needed.")
        return

    logger.info("No admin users found. Attempting bootstrap admin creation...")
    if not create_bootstrap_admin(db):
        logger.info("Bootstrap admin creation skipped. Set BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD to create one.")
