"""
Clinic record operations.

Authorization happens in the route gates; these functions only validate
references and persist.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..auth.models import User, UserRole
from ..exceptions import ConflictException, NotFoundException, ValidationException
from .models import Child, Program, TherapySession, Invoice, InvoiceStatus, Complaint
from .schemas import ChildCreate, ProgramCreate, ProgramUpdate, SessionCreate, InvoiceCreate, ComplaintCreate

logger = logging.getLogger(__name__)


def _require_user_with_role(db: Session, user_id: int, role: UserRole, label: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundException(label)
    if user.role != role:
        raise ValidationException(f"User {user_id} is not a {role.value}")
    return user


def _save(db: Session, instance):
    db.add(instance)
    db.commit()
    db.refresh(instance)
    return instance


def create_child(db: Session, data: ChildCreate) -> Child:
    _require_user_with_role(db, data.parent_id, UserRole.PARENT, "Parent")
    if data.therapist_id is not None:
        _require_user_with_role(db, data.therapist_id, UserRole.THERAPIST, "Therapist")

    child = _save(db, Child(**data.model_dump()))
    logger.info(f"Child {child.id} enrolled (parent {child.parent_id}, therapist {child.therapist_id})")
    return child


def create_program(db: Session, therapist: User, child: Child, data: ProgramCreate) -> Program:
    # An admin writing a program attributes it to the assigned therapist
    therapist_id = therapist.id if therapist.role == UserRole.THERAPIST else child.therapist_id
    if therapist_id is None:
        raise ValidationException("Child has no assigned therapist")

    program = _save(db, Program(
        child_id=child.id,
        therapist_id=therapist_id,
        title=data.title,
        description=data.description
    ))
    logger.info(f"Program {program.id} created for child {child.id}")
    return program


def update_program(db: Session, program: Program, changes: ProgramUpdate) -> Program:
    for field, value in changes.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(program, field, value)
    return _save(db, program)


def create_session(db: Session, therapist: User, child: Child, data: SessionCreate) -> TherapySession:
    therapist_id = therapist.id if therapist.role == UserRole.THERAPIST else child.therapist_id
    if therapist_id is None:
        raise ValidationException("Child has no assigned therapist")

    session = _save(db, TherapySession(
        child_id=child.id,
        therapist_id=therapist_id,
        parent_id=child.parent_id,
        scheduled_at=data.scheduled_at,
        notes=data.notes
    ))
    logger.info(f"Session {session.id} scheduled for child {child.id}")
    return session


def create_invoice(db: Session, data: InvoiceCreate) -> Invoice:
    _require_user_with_role(db, data.parent_id, UserRole.PARENT, "Parent")
    if data.child_id is not None:
        child = db.get(Child, data.child_id)
        if child is None:
            raise NotFoundException("Child")
        if child.parent_id != data.parent_id:
            raise ValidationException("Child does not belong to this parent")

    invoice = _save(db, Invoice(
        parent_id=data.parent_id,
        child_id=data.child_id,
        amount=data.amount,
        status=InvoiceStatus.PENDING
    ))
    logger.info(f"Invoice {invoice.id} issued to parent {invoice.parent_id}")
    return invoice


def pay_invoice(db: Session, invoice: Invoice) -> Invoice:
    """
    Mark an invoice as paid.

    Raises:
        ConflictException: If it was already paid
    """
    result = db.execute(
        update(Invoice)
        .where(Invoice.id == invoice.id, Invoice.status == InvoiceStatus.PENDING)
        .values(status=InvoiceStatus.PAID, paid_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(invoice)
    if result.rowcount != 1:
        raise ConflictException("Invoice already paid")

    logger.info(f"Invoice {invoice.id} paid")
    return invoice


def create_complaint(db: Session, parent: User, data: ComplaintCreate) -> Complaint:
    complaint = _save(db, Complaint(parent_id=parent.id, subject=data.subject, description=data.description))
    logger.info(f"Complaint {complaint.id} submitted by parent {parent.id}")
    return complaint
