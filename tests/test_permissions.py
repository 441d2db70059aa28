import pytest

from clubhub.models import Member
from clubhub import permissions


def _member(org, user):
    return Member.query.filter_by(organization_id=org.id, user_id=user.id).one()


@pytest.mark.parametrize("role,admin,staff", [
    ("owner", True, True),
    ("admin", True, True),
    ("staff", False, True),
    ("member", False, False),
])
def test_role_checks(org, member_factory, role, admin, staff):
    member = _member(org, member_factory(org, role=role))
    assert permissions.is_org_admin(member) is admin
    assert permissions.is_staff(member) is staff
    assert permissions.can_manage_events(member) is admin
    assert permissions.can_manage_users(member) is admin
    assert permissions.can_manage_sessions(member) is staff
    assert permissions.is_restricted_member(member) is (role == "member")


def test_member_with_coach_profile_counts_as_staff(org, user_factory, coach_factory):
    user = user_factory()
    org.members.append(Member(user_id=user.id, role="member"))
    coach = coach_factory(org, email=user.email, name=user.name)
    member = _member(org, coach.user)
    # Creating a coach promotes a plain member to staff
    assert member.role == "staff"

    member.role = "member"
    assert permissions.is_staff(member)
    assert not permissions.is_restricted_member(member)
    assert permissions.can_manage_athletes(member)
    assert not permissions.can_manage_coaches(member)


def test_none_member_has_no_permissions():
    assert not permissions.is_org_admin(None)
    assert not permissions.is_staff(None)
    assert not permissions.is_restricted_member(None)
