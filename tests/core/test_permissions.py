"""
Tests for the role capability matrix.
"""
import itertools

import pytest

from spark_therapy.auth.models import UserRole
from spark_therapy.core.permissions import (
    CAPABILITY_TABLE,
    Action,
    Capability,
    Resource,
    ROLE_CAPABILITIES,
    capability_for,
    get_capabilities_for_role,
    has_capability,
    is_known_role,
)

ADMIN_ONLY = [
    (Action.CREATE, Resource.USERS),
    (Action.DELETE, Resource.USERS),
    (Action.ASSIGN, Resource.THERAPISTS),
    (Action.MANAGE, Resource.BILLING),
    (Action.VIEW, Resource.ALL_DATA),
    (Action.GENERATE, Resource.REPORTS),
]


@pytest.mark.parametrize("action,resource", ADMIN_ONLY)
def test_parent_denied_admin_capabilities(action, resource):
    assert not has_capability(UserRole.PARENT, action, resource)


@pytest.mark.parametrize("action,resource", list(itertools.product(Action, Resource)))
def test_admin_allowed_everything(action, resource):
    assert has_capability(UserRole.ADMIN, action, resource)


def test_capability_names_follow_convention():
    for (action, resource), capability in CAPABILITY_TABLE.items():
        expected = "can" + action.value.capitalize() + resource.value[0].upper() + resource.value[1:]
        assert capability.value == expected


def test_therapist_capabilities():
    assert has_capability("therapist", Action.CREATE, Resource.PROGRAMS)
    assert has_capability("therapist", Action.REQUEST, Resource.LEAVE)
    assert not has_capability("therapist", Action.PAY, Resource.INVOICES)
    assert not has_capability("therapist", Action.SUBMIT, Resource.COMPLAINTS)


def test_parent_capabilities():
    assert has_capability("parent", Action.PAY, Resource.INVOICES)
    assert has_capability("parent", Action.VIEW, Resource.SESSIONS)
    assert not has_capability("parent", Action.CREATE, Resource.PROGRAMS)


def test_pair_missing_from_table_is_denied_for_non_admins():
    assert capability_for(Action.DELETE, Resource.VIDEOS) is None
    assert not has_capability(UserRole.THERAPIST, Action.DELETE, Resource.VIDEOS)
    assert not has_capability(UserRole.PARENT, Action.DELETE, Resource.VIDEOS)


def test_unknown_role_fails_closed():
    assert not is_known_role("superuser")
    assert not is_known_role(None)
    assert get_capabilities_for_role("superuser") == frozenset()
    assert not has_capability("superuser", Action.VIEW, Resource.SESSIONS)


def test_every_role_capability_is_reachable():
    reachable = set(CAPABILITY_TABLE.values())
    for capabilities in ROLE_CAPABILITIES.values():
        assert capabilities <= reachable
    assert Capability.ACCESS_ALL in ROLE_CAPABILITIES[UserRole.ADMIN]
