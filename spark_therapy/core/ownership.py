"""
Resource ownership predicates.

Each predicate is a pure ``(user, resource) -> bool`` used after the coarse
role check has passed, to decide whether the requester may touch one
specific record. Admin owns everything; a role not named by a predicate owns
nothing.
"""
import enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..auth.models import UserRole
from ..clinic.models import Child, Program, TherapySession, Invoice, Complaint
from ..exceptions import NotFoundException, ValidationException


class ResourceType(str, enum.Enum):
    CHILD = "child"
    PROGRAM = "program"
    SESSION = "session"
    INVOICE = "invoice"
    COMPLAINT = "complaint"


def _matches(owner_id: Optional[Any], user_id: Any) -> bool:
    return owner_id is not None and owner_id == user_id


def _child_parent_id(record) -> Optional[int]:
    child = getattr(record, "child", None)
    return getattr(child, "parent_id", None) if child is not None else None


def owns_child(user, child) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.PARENT:
        return _matches(child.parent_id, user.id)
    if user.role == UserRole.THERAPIST:
        return _matches(child.therapist_id, user.id)
    return False


def owns_invoice(user, invoice) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.PARENT:
        return _matches(invoice.parent_id, user.id)
    return False


def owns_complaint(user, complaint) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.PARENT:
        return _matches(complaint.parent_id, user.id)
    return False


def owns_program(user, program) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.THERAPIST:
        return _matches(program.therapist_id, user.id)
    if user.role == UserRole.PARENT:
        # Parents reach programs through their children
        return _matches(_child_parent_id(program), user.id)
    return False


def owns_session(user, session) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.THERAPIST:
        return _matches(session.therapist_id, user.id)
    if user.role == UserRole.PARENT:
        return _matches(_child_parent_id(session), user.id)
    return False


OWNERSHIP_CHECKS: Dict[ResourceType, Callable[[Any, Any], bool]] = {
    ResourceType.CHILD: owns_child,
    ResourceType.PROGRAM: owns_program,
    ResourceType.SESSION: owns_session,
    ResourceType.INVOICE: owns_invoice,
    ResourceType.COMPLAINT: owns_complaint,
}

RESOURCE_MODELS = {
    ResourceType.CHILD: Child,
    ResourceType.PROGRAM: Program,
    ResourceType.SESSION: TherapySession,
    ResourceType.INVOICE: Invoice,
    ResourceType.COMPLAINT: Complaint,
}


def owns_resource(user, resource_type: ResourceType, resource) -> bool:
    """
    Apply the ownership predicate registered for ``resource_type``.

    Args:
        user: Authenticated user (anything with ``id`` and ``role``)
        resource_type: Kind of record being accessed
        resource: The record instance

    Returns:
        bool: True if the user owns or is assigned to the record
    """
    return OWNERSHIP_CHECKS[ResourceType(resource_type)](user, resource)


def load_resource(db: Session, resource_type: ResourceType, resource_id: Any):
    """
    Fetch one record for an ownership check.

    Raises:
        ValidationException: If the id is not an integer
        NotFoundException: If no such record exists
    """
    resource_type = ResourceType(resource_type)
    try:
        key = int(resource_id)
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid {resource_type.value} id")

    instance = db.get(RESOURCE_MODELS[resource_type], key)
    if instance is None:
        raise NotFoundException(resource_type.value.capitalize())
    return instance
