"""
Audit trail: one row per security-relevant event (logins, lockouts,
refresh reuse, admin actions, denied authorizations).
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class AuditLog(Base):
    """
    Fields:
    - user_id: Actor, when known (kept as NULL if the user row goes away)
    - action: Event name such as USER_LOGIN_SUCCESS or RBAC_ACCESS_DENIED
    - details: Free-form JSON context
    - request_id: X-Request-ID of the request that produced the event
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_id_timestamp", "user_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    request_id = Column(String(36), nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    actor = relationship("User")

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', user_id={self.user_id})>"
