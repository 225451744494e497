"""
User Schemas - Pydantic models for request validation and response serialization.

Response models never carry the password hash, the refresh token digest or
the lockout counters.
"""
from typing import Optional
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from .models import UserRole


class UserRegistration(BaseModel):
    """
    Registration Schema - Used for self-registration of any role

    Fields:
    - name / email / password: Identity and credentials
    - role: parent (default), therapist or admin
    - phone: Optional contact number
    - specialization: Therapist specialization (ignored for other roles)
    - admin_secret_key: Shared secret, required when role is admin
    """
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.PARENT
    phone: Optional[str] = None
    specialization: Optional[str] = None
    admin_secret_key: Optional[str] = Field(None, alias="adminSecretKey")

    class Config:
        populate_by_name = True


class UserLogin(BaseModel):
    """
    User Login Schema - Used for authentication

    Fields:
    - email: User's email address
    - password: User's plain text password
    """
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, alias="refreshToken")

    class Config:
        populate_by_name = True


class ProfileUpdate(BaseModel):
    """
    Profile Update Schema - Fields a user may change on their own account.

    There is no role field: the role is fixed at registration.
    """
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)


class UserResponse(BaseModel):
    """
    User Response Schema - Safe public representation of a user
    """
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    phone: Optional[str] = None
    specialization: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True


class TokenResponse(BaseModel):
    """
    Token Response Schema - Returned by register, login and refresh
    """
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdateResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    success: bool = True
    message: str
