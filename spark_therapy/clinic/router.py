"""
Clinic routes: children, programs, sessions, invoices and complaints.

Each route combines a coarse gate (role or capability) with an ownership
check against the specific record.
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth.models import User
from ..auth.dependencies import (
    require_admin, authorize_resource, verify_ownership, enforce_ownership, path_param
)
from ..core.permissions import Action, Resource
from ..core.ownership import ResourceType, load_resource
from .models import Child, Program, TherapySession, Invoice, Complaint
from .schemas import (
    ChildCreate, ChildResponse, ProgramCreate, ProgramUpdate, ProgramResponse,
    SessionCreate, SessionResponse, InvoiceCreate, InvoiceResponse,
    ComplaintCreate, ComplaintResponse
)
from . import service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _owned_child(db: Session, request: Request, user: User, child_id: int) -> Child:
    child = load_resource(db, ResourceType.CHILD, child_id)
    await enforce_ownership(db, request, user, ResourceType.CHILD, child, action="create")
    return child


# Children

@router.post("/children", response_model=ChildResponse, status_code=status.HTTP_201_CREATED, tags=["Children"])
async def create_child(
    data: ChildCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return service.create_child(db, data)


@router.get("/children/{child_id}", response_model=ChildResponse, tags=["Children"])
async def get_child(child: Child = Depends(verify_ownership(ResourceType.CHILD, path_param("child_id")))):
    return child


# Programs

@router.post("/programs", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED, tags=["Programs"])
async def create_program(
    data: ProgramCreate,
    request: Request,
    current_user: User = Depends(authorize_resource(Resource.PROGRAMS, Action.CREATE)),
    db: Session = Depends(get_db)
):
    child = await _owned_child(db, request, current_user, data.child_id)
    return service.create_program(db, current_user, child, data)


@router.get("/programs/{program_id}", response_model=ProgramResponse, tags=["Programs"])
async def get_program(program: Program = Depends(verify_ownership(ResourceType.PROGRAM, path_param("program_id")))):
    return program


@router.put(
    "/programs/{program_id}",
    response_model=ProgramResponse,
    dependencies=[Depends(authorize_resource(Resource.PROGRAMS, Action.UPDATE))],
    tags=["Programs"]
)
async def update_program(
    changes: ProgramUpdate,
    program: Program = Depends(verify_ownership(ResourceType.PROGRAM, path_param("program_id"))),
    db: Session = Depends(get_db)
):
    return service.update_program(db, program, changes)


# Sessions

@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED, tags=["Sessions"])
async def create_session(
    data: SessionCreate,
    request: Request,
    current_user: User = Depends(authorize_resource(Resource.SESSIONS, Action.CREATE)),
    db: Session = Depends(get_db)
):
    child = await _owned_child(db, request, current_user, data.child_id)
    return service.create_session(db, current_user, child, data)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    dependencies=[Depends(authorize_resource(Resource.SESSIONS, Action.VIEW))],
    tags=["Sessions"]
)
async def get_session(
    session: TherapySession = Depends(verify_ownership(ResourceType.SESSION, path_param("session_id")))
):
    return session


# Invoices

@router.post("/invoices", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED, tags=["Billing"])
async def create_invoice(
    data: InvoiceCreate,
    current_user: User = Depends(authorize_resource(Resource.BILLING, Action.MANAGE)),
    db: Session = Depends(get_db)
):
    return service.create_invoice(db, data)


@router.get(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    dependencies=[Depends(authorize_resource(Resource.INVOICES, Action.VIEW))],
    tags=["Billing"]
)
async def get_invoice(
    invoice: Invoice = Depends(verify_ownership(ResourceType.INVOICE, path_param("invoice_id")))
):
    return invoice


@router.post(
    "/invoices/{invoice_id}/pay",
    response_model=InvoiceResponse,
    dependencies=[Depends(authorize_resource(Resource.INVOICES, Action.PAY))],
    tags=["Billing"]
)
async def pay_invoice(
    invoice: Invoice = Depends(verify_ownership(ResourceType.INVOICE, path_param("invoice_id"))),
    db: Session = Depends(get_db)
):
    return service.pay_invoice(db, invoice)


# Complaints

@router.post("/complaints", response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED, tags=["Complaints"])
async def submit_complaint(
    data: ComplaintCreate,
    current_user: User = Depends(authorize_resource(Resource.COMPLAINTS, Action.SUBMIT)),
    db: Session = Depends(get_db)
):
    return service.create_complaint(db, current_user, data)


@router.get("/complaints/{complaint_id}", response_model=ComplaintResponse, tags=["Complaints"])
async def get_complaint(
    complaint: Complaint = Depends(verify_ownership(ResourceType.COMPLAINT, path_param("complaint_id")))
):
    return complaint
