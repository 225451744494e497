"""
Clinic Schemas - request and response models for clinic records.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from .models import InvoiceStatus, ComplaintStatus


class ChildCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    diagnosis: Optional[str] = None
    parent_id: int
    therapist_id: Optional[int] = None


class ChildResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    diagnosis: Optional[str] = None
    parent_id: int
    therapist_id: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True


class ProgramCreate(BaseModel):
    child_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class ProgramUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class ProgramResponse(BaseModel):
    id: int
    child_id: int
    therapist_id: int
    title: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class SessionCreate(BaseModel):
    child_id: int
    scheduled_at: datetime
    notes: Optional[str] = None


class SessionResponse(BaseModel):
    id: int
    child_id: int
    therapist_id: int
    parent_id: int
    scheduled_at: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class InvoiceCreate(BaseModel):
    parent_id: int
    child_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class InvoiceResponse(BaseModel):
    id: int
    parent_id: int
    child_id: Optional[int] = None
    amount: Decimal
    status: InvoiceStatus
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ComplaintCreate(BaseModel):
    subject: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1)


class ComplaintResponse(BaseModel):
    id: int
    parent_id: int
    subject: str
    description: str
    status: ComplaintStatus

    class Config:
        from_attributes = True
