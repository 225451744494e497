from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
import logging

from fastapi import Request
from sqlalchemy.orm import Session

from .audit_models import AuditLog

logger = logging.getLogger(__name__)


async def create_audit_log(
    db: Session,
    action: str,
    user_id: Optional[int] = None,
    request: Optional[Request] = None,
    details: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Creates an audit log entry.

    Args:
        db: The database session.
        action: A string describing the action performed (e.g., 'USER_LOGIN_SUCCESS', 'RBAC_ACCESS_DENIED').
        user_id: The ID of the user who performed the action (if applicable).
        request: The FastAPI request object to extract IP address (if available).
        details: A dictionary containing additional context or data related to the action.

    Returns:
        The created AuditLog object.
    """
    ip_address = None
    request_id = None
    if request is not None:
        if request.client:
            ip_address = request.client.host
        request_id = getattr(request.state, "request_id", None)

    audit_entry = AuditLog(
        user_id=user_id,
        action=action,
        ip_address=ip_address,
        request_id=request_id,
        details=details
    )
    db.add(audit_entry)
    db.commit()
    db.refresh(audit_entry)
    return audit_entry


async def record_access_denied(
    db: Session,
    request: Request,
    user,
    action: str,
    resource: str,
    reason: str
) -> AuditLog:
    """Log and persist a denied authorization attempt."""
    role = getattr(user.role, "value", user.role)
    details = {
        "role": role,
        "resource": resource,
        "action": action,
        "reason": reason,
        "endpoint": request.url.path,
        "method": request.method,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    logger.warning(
        f"Unauthorized access attempt: user={user.id} role={role} "
        f"{action} {resource} on {request.method} {request.url.path} ({reason})"
    )
    return await create_audit_log(db, action="RBAC_ACCESS_DENIED", user_id=user.id, request=request, details=details)


def get_audit_logs(
    db: Session,
    user_id_filter: Optional[int] = None,
    limit: int = 100,
    offset: int = 0
) -> List[AuditLog]:
    query = db.query(AuditLog)
    if user_id_filter is not None:
        query = query.filter(AuditLog.user_id == user_id_filter)
    return query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).offset(offset).limit(limit).all()
