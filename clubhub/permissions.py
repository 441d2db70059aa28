"""Role checks for organization members.

Roles are ``owner``, ``admin``, ``staff`` and ``member``. A plain member who
also has a coach profile in the organization is treated as staff.
"""

from clubhub.models import Coach

ADMIN_ROLES = ("owner", "admin")
STAFF_ROLES = ("owner", "admin", "staff")


def has_coach_profile(member):
    return Coach.query.filter_by(
        organization_id=member.organization_id, user_id=member.user_id
    ).first() is not None


def is_org_admin(member):
    return member is not None and member.role in ADMIN_ROLES


def is_staff(member):
    if member is None:
        return False
    if member.role in STAFF_ROLES:
        return True
    return has_coach_profile(member)


def is_restricted_member(member):
    return member is not None and member.role == "member" and not has_coach_profile(member)


def can_manage_events(member):
    return is_org_admin(member)


def can_manage_coaches(member):
    return is_org_admin(member)


def can_manage_users(member):
    return is_org_admin(member)


def can_manage_sessions(member):
    return is_staff(member)


def can_manage_athletes(member):
    return is_staff(member)


PERMISSIONS = {
    "admin": is_org_admin,
    "staff": is_staff,
    "manage_events": can_manage_events,
    "manage_coaches": can_manage_coaches,
    "manage_users": can_manage_users,
    "manage_sessions": can_manage_sessions,
    "manage_athletes": can_manage_athletes,
}


def check_permission(member, permission):
    return PERMISSIONS[permission](member)
