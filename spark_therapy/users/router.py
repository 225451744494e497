"""
User administration routes.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.models import User, UserRole
from ..auth.schemas import UserResponse
from ..auth.dependencies import get_current_user, require_admin
from ..auth.exceptions import PermissionDeniedException
from ..core.audit_service import get_audit_logs, record_access_denied
from ..core.pagination import PageParams, PageResponse, paginate
from .schemas import UserStatusResponse, AuditLogResponse
from . import service

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.get("/", response_model=PageResponse[UserResponse], summary="List all users")
async def list_users(
    page_params: PageParams = Depends(),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return paginate(service.list_users_query(db), page_params, UserResponse)


@router.get("/role/{role}", response_model=PageResponse[UserResponse], summary="List users with one role")
async def list_users_by_role(
    role: UserRole,
    page_params: PageParams = Depends(),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return paginate(service.list_users_query(db, role), page_params, UserResponse)


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
async def get_user(
    user_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Users may read their own record; admins may read any.
    """
    if current_user.id != user_id and current_user.role != UserRole.ADMIN:
        await record_access_denied(db, request, current_user, "view", f"user:{user_id}", "not self")
        raise PermissionDeniedException("Not authorized to access this user")
    return service.get_user(db, user_id)


@router.put("/{user_id}/deactivate", response_model=UserStatusResponse, summary="Deactivate an account")
async def deactivate_user(
    user_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = await service.set_user_active(db, admin, user_id, False, request=request)
    return UserStatusResponse(message="User deactivated successfully", user=UserResponse.model_validate(user))


@router.put("/{user_id}/activate", response_model=UserStatusResponse, summary="Reactivate an account")
async def activate_user(
    user_id: int,
    request: Request,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    user = await service.set_user_active(db, admin, user_id, True, request=request)
    return UserStatusResponse(message="User activated successfully", user=UserResponse.model_validate(user))


@admin_router.get("/audit-logs", response_model=List[AuditLogResponse], summary="Read the audit trail")
async def read_audit_logs(
    user_id: Optional[int] = Query(None, description="Only entries for this user"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return get_audit_logs(db, user_id_filter=user_id, limit=limit, offset=offset)
