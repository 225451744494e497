"""
Core security utilities for authentication and password handling.

Access and refresh tokens are signed with distinct secrets so that a leaked
access secret cannot mint refresh tokens and vice versa. Issuer and audience
are pinned, and HS256 is the only algorithm accepted on decode.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
import hashlib
import hmac
import logging
import uuid

from ..config import settings
from ..auth.exceptions import (
    TokenExpiredException,
    InvalidTokenException,
    MalformedTokenException
)

# Set up logging
logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

# Registered claims every token must carry
REQUIRED_CLAIMS_OPTIONS = {
    "require_exp": True,
    "require_iss": True,
    "require_aud": True,
}

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds
)

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash
    """
    return pwd_context.verify(plain_password, hashed_password)

def dummy_verify_password() -> None:
    """Burn the time of one verification so unknown emails answer as slowly as known ones."""
    pwd_context.dummy_verify()

def _create_token(user_id: int, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "id": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + lifetime,
        # keeps two tokens minted in the same second distinct
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)

def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: Id of the user the token is issued to
        expires_delta: Token expiration time (default: ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        str: Encoded JWT token
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _create_token(user_id, settings.jwt_secret, lifetime)

def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a refresh token for token renewal.

    Args:
        user_id: Id of the user the token is issued to
        expires_delta: Optional custom expiration time (default: REFRESH_TOKEN_EXPIRE_DAYS)

    Returns:
        str: Encoded refresh token
    """
    lifetime = expires_delta or timedelta(days=settings.refresh_token_expire_days)
    return _create_token(user_id, settings.jwt_refresh_secret, lifetime)

def hash_refresh_token(token: str) -> str:
    """
    Hash a refresh token for storage comparison.

    Args:
        token: Refresh token to hash

    Returns:
        str: 64 character hex SHA-256 digest
    """
    return hashlib.sha256(token.encode()).hexdigest()

def refresh_token_matches(token: str, stored_hash: Optional[str]) -> bool:
    """Constant-time comparison of a presented refresh token against the stored digest."""
    if not stored_hash:
        return False
    return hmac.compare_digest(hash_refresh_token(token), stored_hash)

def verify_token(token: str, secret: str) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string
        secret: Secret the token must be signed with

    Returns:
        Dict with the ``id`` of the token subject

    Raises:
        TokenExpiredException: If the token is past its expiry
        InvalidTokenException: If signature, issuer or audience do not match
        MalformedTokenException: If the token carries no usable user id
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=REQUIRED_CLAIMS_OPTIONS
        )
    except ExpiredSignatureError:
        raise TokenExpiredException()
    except JWTError as e:
        logger.debug(f"Token rejected: {str(e)}")
        raise InvalidTokenException()

    user_id = payload.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise MalformedTokenException()

    return {"id": user_id}

def decode_access_token(token: str) -> Dict[str, Any]:
    return verify_token(token, settings.jwt_secret)

def decode_refresh_token(token: str) -> Dict[str, Any]:
    return verify_token(token, settings.jwt_refresh_secret)
