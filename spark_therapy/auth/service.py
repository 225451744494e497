"""
Authentication service layer for business logic.

Session lifecycle per user: anonymous -> authenticated (register/login)
-> refreshed any number of times -> logged out. Exactly one refresh token is
live per user; only its digest is stored.
"""
import hmac
import logging
from datetime import timedelta
from typing import Dict, Any, Optional, Tuple

from fastapi import Request
from sqlalchemy.orm import Session

from ..config import settings
from ..core.security import (
    hash_password,
    verify_password,
    dummy_verify_password,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_refresh_token,
    refresh_token_matches
)
from ..core.audit_service import create_audit_log
from ..exceptions import ConflictException
from .models import User, UserRole
from .schemas import UserResponse, ProfileUpdate
from .store import UserStore
from .exceptions import (
    InvalidCredentialsException,
    InvalidTokenException,
    AccountLockedException,
    AccountDeactivatedException,
    PermissionDeniedException
)

# Set up logging
logger = logging.getLogger(__name__)


def issue_token_pair(user: User) -> Tuple[str, str]:
    """Mint a fresh access/refresh pair for ``user``."""
    return create_access_token(user.id), create_refresh_token(user.id)


def _token_response(user: User, access_token: str, refresh_token: str) -> Dict[str, Any]:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user)
    }


def _check_admin_secret(provided: Optional[str]) -> None:
    """
    Gate admin self-registration behind the configured shared secret.

    Raises:
        PermissionDeniedException: If the key is missing, wrong, or not configured
    """
    if not provided:
        raise PermissionDeniedException("Admin secret key is required to create an admin account")

    expected = settings.admin_secret_key
    if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise PermissionDeniedException("Invalid admin secret key. Contact system administrator.")


async def register_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.PARENT,
    phone: Optional[str] = None,
    specialization: Optional[str] = None,
    admin_secret_key: Optional[str] = None,
    request: Optional[Request] = None
) -> Dict[str, Any]:
    """
    Register a new user and log them in.

    Args:
        db: Database session
        name: User's name
        email: User's email address
        password: User's password
        role: Requested role
        phone: Contact number (optional)
        specialization: Therapist specialization (optional, therapists only)
        admin_secret_key: Shared secret required for the admin role
        request: FastAPI request object for audit logging

    Returns:
        Dict with the token pair and the new user

    Raises:
        PermissionDeniedException: Admin role requested without the right secret
        ConflictException: If email already exists
    """
    store = UserStore(db)
    role = UserRole(role)
    logger.info(f"Registration attempt for email: {email} (role: {role.value})")

    if role == UserRole.ADMIN:
        try:
            _check_admin_secret(admin_secret_key)
        except PermissionDeniedException:
            logger.warning(f"Failed admin signup attempt for {email}")
            await create_audit_log(db, action="ADMIN_REGISTRATION_DENIED", request=request, details={"email": email})
            raise

    if store.find_by_email(email):
        logger.warning(f"Registration failed: Email {email} already registered")
        raise ConflictException("User already exists")

    user = store.create(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        phone=phone or None,
        specialization=(specialization or None) if role == UserRole.THERAPIST else None,
        is_active=True
    )

    access_token, refresh_token = issue_token_pair(user)
    user = store.record_login(user, hash_refresh_token(refresh_token))

    logger.info(f"User registered: {user.id} ({user.email})")
    await create_audit_log(db, action="USER_REGISTRATION_SUCCESS", user_id=user.id, request=request, details={"role": role.value})

    return _token_response(user, access_token, refresh_token)


async def login_user(
    db: Session,
    email: str,
    password: str,
    request: Optional[Request] = None
) -> Dict[str, Any]:
    """
    Authenticate a user and generate a token pair.

    Args:
        db: Database session
        email: User's email address
        password: User's password
        request: FastAPI request object for audit logging

    Returns:
        Dict with access token, refresh token and user information

    Raises:
        InvalidCredentialsException: Unknown email or wrong password
        AccountLockedException: Account is (or just became) locked
        AccountDeactivatedException: Correct password on a deactivated account
    """
    store = UserStore(db)
    user = store.find_by_email(email)

    if user is None:
        dummy_verify_password()
        logger.warning(f"Login failed: Invalid credentials for {email}")
        await create_audit_log(db, action="USER_LOGIN_FAILED_INVALID_CREDENTIALS", request=request, details={"email": email})
        raise InvalidCredentialsException()

    if user.is_locked:
        logger.warning(f"Login refused: account {user.id} is locked")
        await create_audit_log(db, action="USER_LOGIN_REFUSED_LOCKED", user_id=user.id, request=request)
        raise AccountLockedException()

    if not verify_password(password, user.password_hash):
        user = store.register_failed_login(
            user,
            max_attempts=settings.max_login_attempts,
            lock_duration=timedelta(hours=settings.lock_time_hours)
        )
        await create_audit_log(
            db,
            action="USER_LOGIN_FAILED_INVALID_CREDENTIALS",
            user_id=user.id,
            request=request,
            details={"failed_attempts": user.failed_login_attempts}
        )
        if user.is_locked:
            logger.warning(f"Account {user.id} locked after {user.failed_login_attempts} failed logins")
            await create_audit_log(db, action="USER_ACCOUNT_LOCKED", user_id=user.id, request=request)
            raise AccountLockedException()
        logger.warning(f"Login failed: Invalid credentials for {email}")
        raise InvalidCredentialsException()

    if not user.is_active:
        logger.warning(f"Login refused: account {user.id} is deactivated")
        raise AccountDeactivatedException()

    access_token, refresh_token = issue_token_pair(user)
    user = store.record_login(user, hash_refresh_token(refresh_token))

    logger.info(f"Login successful: User {user.id} ({user.email})")
    await create_audit_log(db, action="USER_LOGIN_SUCCESS", user_id=user.id, request=request)

    return _token_response(user, access_token, refresh_token)


async def logout_user(db: Session, user: User, request: Optional[Request] = None) -> None:
    """
    Invalidate the user's refresh token. Calling it again is harmless.
    """
    UserStore(db).clear_refresh_token(user)
    logger.info(f"User {user.id} logged out")
    await create_audit_log(db, action="USER_LOGOUT", user_id=user.id, request=request)


async def refresh_access_token(
    db: Session,
    refresh_token: str,
    request: Optional[Request] = None
) -> Dict[str, Any]:
    """
    Exchange a refresh token for a new token pair, rotating the stored digest.

    Args:
        db: Database session
        refresh_token: Refresh token presented by the client
        request: FastAPI request object for audit logging

    Returns:
        Dict with the new access token, new refresh token and user

    Raises:
        TokenExpiredException / InvalidTokenException / MalformedTokenException:
            The token does not verify against the refresh secret
        InvalidTokenException: Unknown user, no live session, or a reused token
        AccountDeactivatedException: The account was deactivated
    """
    payload = decode_refresh_token(refresh_token)

    store = UserStore(db)
    user = store.find_by_id(payload["id"])

    if user is None or not user.refresh_token_hash:
        raise InvalidTokenException("Invalid refresh token")

    if not refresh_token_matches(refresh_token, user.refresh_token_hash):
        logger.warning(f"Refresh token reuse detected for user {user.id}")
        await create_audit_log(db, action="REFRESH_TOKEN_REUSE_DETECTED", user_id=user.id, request=request)
        raise InvalidTokenException("Invalid refresh token")

    if not user.is_active:
        raise AccountDeactivatedException("Account is deactivated")

    access_token, new_refresh_token = issue_token_pair(user)
    rotated = store.rotate_refresh_token(
        user,
        presented_hash=hash_refresh_token(refresh_token),
        new_hash=hash_refresh_token(new_refresh_token)
    )
    if not rotated:
        # Another request consumed this token between the check and the update
        raise InvalidTokenException("Invalid refresh token")

    logger.info(f"Token refreshed for user {user.id} ({user.email})")
    await create_audit_log(db, action="USER_ACCESS_TOKEN_REFRESHED", user_id=user.id, request=request)

    return _token_response(user, access_token, new_refresh_token)


def get_profile(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


async def update_profile(
    db: Session,
    user: User,
    changes: ProfileUpdate,
    request: Optional[Request] = None
) -> Dict[str, Any]:
    """
    Update the caller's own identity fields.

    Raises:
        ConflictException: If the new email belongs to another account
    """
    store = UserStore(db)
    data = changes.model_dump(exclude_unset=True, exclude_none=True)

    new_email = data.get("email")
    if new_email and new_email.lower() != user.email:
        existing = store.find_by_email(new_email)
        if existing and existing.id != user.id:
            raise ConflictException("Email already in use")
        user.email = new_email

    for field in ("name", "phone"):
        if field in data:
            setattr(user, field, data[field])

    if "specialization" in data and user.role == UserRole.THERAPIST:
        user.specialization = data["specialization"]

    if "password" in data:
        user.password_hash = hash_password(data["password"])

    user = store.save(user)
    logger.info(f"Profile updated for user {user.id}")
    await create_audit_log(
        db,
        action="USER_PROFILE_UPDATED",
        user_id=user.id,
        request=request,
        details={"fields": sorted(data.keys())}
    )

    return {
        "user": UserResponse.model_validate(user),
        "access_token": create_access_token(user.id),
        "token_type": "bearer"
    }
