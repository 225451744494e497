from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..auth.schemas import UserResponse


class UserStatusResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse


class AuditLogResponse(BaseModel):
    """Audit Log Response Schema"""
    id: int
    user_id: Optional[int] = None
    action: str
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True
