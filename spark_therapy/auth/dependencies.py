"""
FastAPI dependencies for authentication and authorization.

Gates compose in order: ``get_current_user`` (authenticate), then
``require_roles`` or ``authorize_resource`` (coarse role/capability check),
then ``verify_ownership`` (per-instance check). Every denial is a 403 and is
written to the audit trail.
"""
import logging
from typing import Any, Callable, Iterable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..database import get_db
from ..core.security import decode_access_token
from ..core.audit_service import record_access_denied
from ..core.permissions import Action, Resource, has_capability, is_known_role
from ..core.ownership import ResourceType, load_resource, owns_resource
from .models import User, UserRole
from .store import UserStore
from .exceptions import (
    AuthException,
    NotAuthenticatedException,
    AccountDeactivatedException,
    PermissionDeniedException,
    RoleDeniedException
)

# Set up logging
logger = logging.getLogger(__name__)

# auto_error is off so a missing header falls through to the query parameter
bearer_scheme = HTTPBearer(auto_error=False)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    """
    Pull the bearer token from the Authorization header, or from the
    ``token`` query parameter for download links.

    Raises:
        NotAuthenticatedException: If neither carries a token
    """
    if credentials and credentials.credentials:
        return credentials.credentials

    token = request.query_params.get("token")
    if token:
        return token

    raise NotAuthenticatedException()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from the access token.

    Args:
        request: Incoming request; the user is attached to ``request.state.user``
        credentials: Bearer credentials from the Authorization header
        db: Database session

    Returns:
        User: Current authenticated, active user

    Raises:
        NotAuthenticatedException: No token supplied
        TokenExpiredException / InvalidTokenException / MalformedTokenException:
            Token does not verify
        AuthException: Token subject no longer exists
        AccountDeactivatedException: Account has been deactivated
    """
    token = extract_token(request, credentials)
    payload = decode_access_token(token)

    user = UserStore(db).find_by_id(payload["id"])
    if user is None:
        raise AuthException("Not authorized, user not found")

    if not user.is_active:
        logger.warning(f"Rejected access token for deactivated user {user.id}")
        raise AccountDeactivatedException()

    request.state.user = user
    return user


def require_roles(allowed_roles: Iterable[UserRole]):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Dependency returning the current user when their role is allowed
    """
    allowed = frozenset(UserRole(role) for role in allowed_roles)

    async def role_checker(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
    ) -> User:
        if current_user.role not in allowed:
            await record_access_denied(
                db, request, current_user,
                action="access",
                resource=request.url.path,
                reason=f"role not in {sorted(role.value for role in allowed)}"
            )
            raise RoleDeniedException(getattr(current_user.role, "value", current_user.role))
        return current_user

    return role_checker


require_admin = require_roles([UserRole.ADMIN])


def authorize_resource(resource: Resource, action: Action):
    """
    Dependency factory for the capability matrix check.

    Args:
        resource: Resource being accessed
        action: Action being performed

    Returns:
        Dependency returning the current user when the role holds the capability
    """
    resource = Resource(resource)
    action = Action(action)

    async def capability_checker(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
    ) -> User:
        role = getattr(current_user.role, "value", current_user.role)

        if not is_known_role(current_user.role):
            await record_access_denied(db, request, current_user, action.value, resource.value, "unknown role")
            raise PermissionDeniedException(f"Role '{role}' not recognized")

        if not has_capability(current_user.role, action, resource):
            await record_access_denied(db, request, current_user, action.value, resource.value, "missing capability")
            raise PermissionDeniedException(f"Insufficient permissions for {action.value} {resource.value}")

        return current_user

    return capability_checker


def path_param(name: str) -> Callable[[Request], Any]:
    """Id extractor reading a path parameter."""
    def extract(request: Request) -> Any:
        return request.path_params.get(name)
    return extract


async def enforce_ownership(
    db: Session,
    request: Request,
    user: User,
    resource_type: ResourceType,
    instance: Any,
    action: str = "access"
) -> None:
    """
    Apply the ownership predicate to an already loaded record.

    Raises:
        PermissionDeniedException: If the user neither owns nor is assigned to the record
    """
    resource_type = ResourceType(resource_type)
    if not owns_resource(user, resource_type, instance):
        await record_access_denied(
            db, request, user,
            action=action,
            resource=f"{resource_type.value}:{instance.id}",
            reason="ownership check failed"
        )
        raise PermissionDeniedException(f"Not authorized to access this {resource_type.value}")


def verify_ownership(resource_type: ResourceType, get_id: Callable[[Request], Any]):
    """
    Dependency factory gating access to one specific record.

    Args:
        resource_type: Kind of record
        get_id: Callable extracting the record id from the request

    Returns:
        Dependency returning the loaded record, also attached to
        ``request.state.resource``
    """
    resource_type = ResourceType(resource_type)

    async def ownership_checker(
        request: Request,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
    ):
        instance = load_resource(db, resource_type, get_id(request))
        await enforce_ownership(db, request, current_user, resource_type, instance, action=request.method.lower())
        request.state.resource = instance
        return instance

    return ownership_checker
