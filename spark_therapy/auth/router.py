"""
Authentication routes for the Spark Therapy API.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..core.middleware import limit_login_attempts
from .models import User
from .schemas import (
    UserRegistration, UserLogin, RefreshTokenRequest, ProfileUpdate,
    UserResponse, TokenResponse, ProfileUpdateResponse, MessageResponse
)
from .dependencies import get_current_user
from . import service

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_login_attempts)],
    summary="Self-registration"
)
async def register(
    user_data: UserRegistration,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Register a parent, therapist or (with the admin secret key) admin account.

    Registration logs the new user in: the response carries a token pair.
    """
    return await service.register_user(
        db=db,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role,
        phone=user_data.phone,
        specialization=user_data.specialization,
        admin_secret_key=user_data.admin_secret_key,
        request=request
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[Depends(limit_login_attempts)],
    summary="Login with email and password"
)
async def login(
    credentials: UserLogin,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Authenticate with email and password.

    Five consecutive failures lock the account for two hours (configurable).
    """
    return await service.login_user(db, credentials.email, credentials.password, request=request)


@router.post("/logout", response_model=MessageResponse, summary="Invalidate the refresh token")
async def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    await service.logout_user(db, current_user, request=request)
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh", response_model=TokenResponse, summary="Rotate the token pair")
async def refresh(
    body: RefreshTokenRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Exchange a refresh token for a new access and refresh token.

    The presented refresh token is single use.
    """
    return await service.refresh_access_token(db, body.refresh_token, request=request)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(current_user: User = Depends(get_current_user)):
    return service.get_profile(current_user)


@router.get("/profile", response_model=UserResponse, summary="Get own profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return service.get_profile(current_user)


@router.put("/profile", response_model=ProfileUpdateResponse, summary="Update own profile")
async def update_profile(
    changes: ProfileUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update name, email, phone, specialization or password.

    Returns the updated user together with a fresh access token.
    """
    return await service.update_profile(db, current_user, changes, request=request)
