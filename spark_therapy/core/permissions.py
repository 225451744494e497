"""
Core permissions utilities for role-based access control.

Capabilities are looked up through an explicit ``(Action, Resource)`` table;
a pair that is not in the table maps to no capability and is denied for every
role except admin.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, Union

from ..auth.models import UserRole


class Action(str, Enum):
    ACCESS = "access"
    ASSIGN = "assign"
    CREATE = "create"
    DELETE = "delete"
    GENERATE = "generate"
    MANAGE = "manage"
    PAY = "pay"
    REQUEST = "request"
    SUBMIT = "submit"
    UPDATE = "update"
    UPLOAD = "upload"
    VIEW = "view"


class Resource(str, Enum):
    ALL = "all"
    ALL_DATA = "allData"
    ASSIGNED_CHILDREN = "assignedChildren"
    BILLING = "billing"
    CHILD_PROGRESS = "childProgress"
    COMPLAINTS = "complaints"
    FEEDBACK = "feedback"
    INVOICES = "invoices"
    LEAVE = "leave"
    OWN_CHILDREN = "ownChildren"
    PROGRAMS = "programs"
    REPORTS = "reports"
    SCHEDULE = "schedule"
    SESSIONS = "sessions"
    THERAPISTS = "therapists"
    USERS = "users"
    VIDEOS = "videos"


class Capability(str, Enum):
    """
    Named capabilities, ``can<Action><Resource>``.
    """
    ACCESS_ALL = "canAccessAll"
    CREATE_USERS = "canCreateUsers"
    DELETE_USERS = "canDeleteUsers"
    ASSIGN_THERAPISTS = "canAssignTherapists"
    MANAGE_BILLING = "canManageBilling"
    VIEW_ALL_DATA = "canViewAllData"
    GENERATE_REPORTS = "canGenerateReports"

    ACCESS_ASSIGNED_CHILDREN = "canAccessAssignedChildren"
    CREATE_PROGRAMS = "canCreatePrograms"
    UPDATE_PROGRAMS = "canUpdatePrograms"
    VIEW_SESSIONS = "canViewSessions"
    CREATE_SESSIONS = "canCreateSessions"
    UPDATE_SESSIONS = "canUpdateSessions"
    VIEW_FEEDBACK = "canViewFeedback"
    CREATE_FEEDBACK = "canCreateFeedback"
    VIEW_VIDEOS = "canViewVideos"
    UPLOAD_VIDEOS = "canUploadVideos"
    VIEW_SCHEDULE = "canViewSchedule"
    REQUEST_LEAVE = "canRequestLeave"

    ACCESS_OWN_CHILDREN = "canAccessOwnChildren"
    VIEW_CHILD_PROGRESS = "canViewChildProgress"
    VIEW_INVOICES = "canViewInvoices"
    PAY_INVOICES = "canPayInvoices"
    SUBMIT_COMPLAINTS = "canSubmitComplaints"


CAPABILITY_TABLE: Dict[Tuple[Action, Resource], Capability] = {
    (Action.ACCESS, Resource.ALL): Capability.ACCESS_ALL,
    (Action.CREATE, Resource.USERS): Capability.CREATE_USERS,
    (Action.DELETE, Resource.USERS): Capability.DELETE_USERS,
    (Action.ASSIGN, Resource.THERAPISTS): Capability.ASSIGN_THERAPISTS,
    (Action.MANAGE, Resource.BILLING): Capability.MANAGE_BILLING,
    (Action.VIEW, Resource.ALL_DATA): Capability.VIEW_ALL_DATA,
    (Action.GENERATE, Resource.REPORTS): Capability.GENERATE_REPORTS,

    (Action.ACCESS, Resource.ASSIGNED_CHILDREN): Capability.ACCESS_ASSIGNED_CHILDREN,
    (Action.CREATE, Resource.PROGRAMS): Capability.CREATE_PROGRAMS,
    (Action.UPDATE, Resource.PROGRAMS): Capability.UPDATE_PROGRAMS,
    (Action.VIEW, Resource.SESSIONS): Capability.VIEW_SESSIONS,
    (Action.CREATE, Resource.SESSIONS): Capability.CREATE_SESSIONS,
    (Action.UPDATE, Resource.SESSIONS): Capability.UPDATE_SESSIONS,
    (Action.VIEW, Resource.FEEDBACK): Capability.VIEW_FEEDBACK,
    (Action.CREATE, Resource.FEEDBACK): Capability.CREATE_FEEDBACK,
    (Action.VIEW, Resource.VIDEOS): Capability.VIEW_VIDEOS,
    (Action.UPLOAD, Resource.VIDEOS): Capability.UPLOAD_VIDEOS,
    (Action.VIEW, Resource.SCHEDULE): Capability.VIEW_SCHEDULE,
    (Action.REQUEST, Resource.LEAVE): Capability.REQUEST_LEAVE,

    (Action.ACCESS, Resource.OWN_CHILDREN): Capability.ACCESS_OWN_CHILDREN,
    (Action.VIEW, Resource.CHILD_PROGRESS): Capability.VIEW_CHILD_PROGRESS,
    (Action.VIEW, Resource.INVOICES): Capability.VIEW_INVOICES,
    (Action.PAY, Resource.INVOICES): Capability.PAY_INVOICES,
    (Action.SUBMIT, Resource.COMPLAINTS): Capability.SUBMIT_COMPLAINTS,
}


# Role-based capability mapping
ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.ADMIN: frozenset([
        # Wildcard; short-circuits every check
        Capability.ACCESS_ALL,
        Capability.CREATE_USERS,
        Capability.DELETE_USERS,
        Capability.ASSIGN_THERAPISTS,
        Capability.MANAGE_BILLING,
        Capability.VIEW_ALL_DATA,
        Capability.GENERATE_REPORTS,
    ]),
    UserRole.THERAPIST: frozenset([
        Capability.ACCESS_ASSIGNED_CHILDREN,
        Capability.CREATE_PROGRAMS,
        Capability.UPDATE_PROGRAMS,
        Capability.VIEW_SESSIONS,
        Capability.CREATE_SESSIONS,
        Capability.UPDATE_SESSIONS,
        Capability.VIEW_FEEDBACK,
        Capability.CREATE_FEEDBACK,
        Capability.VIEW_VIDEOS,
        Capability.UPLOAD_VIDEOS,
        Capability.VIEW_SCHEDULE,
        Capability.REQUEST_LEAVE,
    ]),
    UserRole.PARENT: frozenset([
        Capability.ACCESS_OWN_CHILDREN,
        Capability.VIEW_CHILD_PROGRESS,
        Capability.VIEW_INVOICES,
        Capability.PAY_INVOICES,
        Capability.SUBMIT_COMPLAINTS,
        Capability.VIEW_FEEDBACK,
        Capability.VIEW_SESSIONS,
    ]),
}


def _as_role(role: Union[UserRole, str, None]) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def is_known_role(role: Union[UserRole, str, None]) -> bool:
    return _as_role(role) in ROLE_CAPABILITIES


def get_capabilities_for_role(role: Union[UserRole, str, None]) -> FrozenSet[Capability]:
    """
    Get capabilities for a specific role.

    Args:
        role: User role (enum or its string value)

    Returns:
        FrozenSet[Capability]: Capabilities of the role, empty for an unknown role
    """
    return ROLE_CAPABILITIES.get(_as_role(role), frozenset())


def capability_for(action: Action, resource: Resource) -> Optional[Capability]:
    """Capability guarding ``action`` on ``resource``, or None when no role is granted it."""
    return CAPABILITY_TABLE.get((Action(action), Resource(resource)))


def has_capability(role: Union[UserRole, str, None], action: Action, resource: Resource) -> bool:
    """
    Check if a role may perform ``action`` on ``resource``.

    Args:
        role: User role
        action: Requested action
        resource: Requested resource

    Returns:
        bool: True if the role holds the wildcard or the specific capability
    """
    capabilities = get_capabilities_for_role(role)
    if Capability.ACCESS_ALL in capabilities:
        return True

    capability = capability_for(action, resource)
    return capability is not None and capability in capabilities
