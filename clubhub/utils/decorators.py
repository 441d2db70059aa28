from functools import wraps

from flask import g, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from clubhub.errors import BadRequest, Forbidden, NotFound, Unauthorized
from clubhub.models import Member, Organization, User
from clubhub.permissions import check_permission
from clubhub.extensions import db

ORGANIZATION_HEADER = "X-Organization-Id"


def load_current_user():
    user = db.session.get(User, int(get_jwt_identity()))
    if not user or user.status != "active":
        raise Unauthorized("User not found")
    g.current_user = user
    return user


def user_required(view_func):
    """Requires a valid JWT and stores the user on ``g.current_user``."""
    @wraps(view_func)
    @jwt_required()
    def wrapper(*args, **kwargs):
        load_current_user()
        return view_func(*args, **kwargs)
    return wrapper


def org_required(permission=None):
    """
    Resolves the active organization from the ``X-Organization-Id`` header.

    Sets ``g.current_user``, ``g.organization`` and ``g.member``; when
    ``permission`` is given the member must hold it.
    """
    def decorator(view_func):
        @wraps(view_func)
        @jwt_required()
        def wrapper(*args, **kwargs):
            user = load_current_user()

            raw_id = request.headers.get(ORGANIZATION_HEADER)
            if not raw_id:
                raise BadRequest(f"Missing {ORGANIZATION_HEADER} header")
            try:
                organization_id = int(raw_id)
            except ValueError:
                raise BadRequest(f"Invalid {ORGANIZATION_HEADER} header")

            organization = db.session.get(Organization, organization_id)
            if not organization:
                raise NotFound("Organization not found")

            member = Member.query.filter_by(organization_id=organization_id, user_id=user.id).first()
            if not member:
                raise Forbidden("You are not a member of this organization")

            if permission and not check_permission(member, permission):
                raise Forbidden("You do not have permission to perform this action")

            g.organization = organization
            g.member = member
            return view_func(*args, **kwargs)
        return wrapper
    return decorator
