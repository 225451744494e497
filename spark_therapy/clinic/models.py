"""
Clinic resource models.

Only the fields the authorization layer reasons about are modelled here:
who the parent is, which therapist is assigned, and which child a record
belongs to.
"""
import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, Enum, func
from sqlalchemy.orm import relationship

from ..database import Base


class InvoiceStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class ComplaintStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


def _enum(enum_cls, name):
    return Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


class Child(Base):
    """
    Child Model - A child enrolled at the clinic

    Fields:
    - parent_id: Parent/guardian user who owns the record
    - therapist_id: Therapist currently assigned (optional)
    """
    __tablename__ = "children"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    diagnosis = Column(String, nullable=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    therapist_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    programs = relationship("Program", back_populates="child")
    sessions = relationship("TherapySession", back_populates="child")

    def __repr__(self):
        return f"<Child(id={self.id}, parent_id={self.parent_id}, therapist_id={self.therapist_id})>"


class Program(Base):
    """Therapy program written by a therapist for one child."""
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True)
    therapist_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    child = relationship("Child", back_populates="programs")


class TherapySession(Base):
    """A scheduled or completed therapy session."""
    __tablename__ = "therapy_sessions"

    id = Column(Integer, primary_key=True, index=True)
    child_id = Column(Integer, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True)
    therapist_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    child = relationship("Child", back_populates="sessions")


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    child_id = Column(Integer, ForeignKey("children.id"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(_enum(InvoiceStatus, "invoicestatus"), nullable=False, default=InvoiceStatus.PENDING)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    subject = Column(String, nullable=False)
    description = Column(String, nullable=False)
    status = Column(_enum(ComplaintStatus, "complaintstatus"), nullable=False, default=ComplaintStatus.OPEN)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
