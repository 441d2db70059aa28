import logging
import secrets

from clubhub.errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from clubhub.extensions import db
from clubhub.models import Member, Organization, User
from clubhub.services.common import apply_fields, unique_slug
from clubhub.utils.dates import utcnow

logger = logging.getLogger(__name__)


def register_user(name, email, password, phone=None):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise Conflict("Email already registered")

    user = User(name=name, email=email, phone=phone)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s", user.id)
    return user


def authenticate(email, password):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not user.check_password(password):
        raise Unauthorized("Invalid email or password")
    if user.status != "active":
        raise Forbidden("Account is suspended")
    user.last_login_at = utcnow()
    db.session.commit()
    return user


def get_or_create_user(email, name, phone=None):
    """Finds a user by email or creates one with a random password."""
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    if user:
        return user, False
    user = User(email=email, name=name, phone=phone)
    user.set_password(secrets.token_urlsafe(16))
    db.session.add(user)
    db.session.flush()
    return user, True


def create_organization(user, data):
    organization = Organization(
        name=data["name"],
        slug=unique_slug(Organization, data.get("slug") or data["name"]),
        logo=data.get("logo"),
    )
    if data.get("timezone"):
        organization.timezone = data["timezone"]
    if data.get("locale"):
        organization.locale = data["locale"]
    db.session.add(organization)
    db.session.flush()
    db.session.add(Member(organization_id=organization.id, user_id=user.id, role="owner"))
    db.session.commit()
    logger.info("Organization %s created by user %s", organization.id, user.id)
    return organization


def list_user_organizations(user):
    rows = (
        db.session.query(Organization, Member.role)
        .join(Member, Member.organization_id == Organization.id)
        .filter(Member.user_id == user.id)
        .order_by(Organization.name.asc())
        .all()
    )
    return [dict(organization.to_dict(), role=role) for organization, role in rows]


def update_organization(organization, data):
    if "slug" in data and data["slug"] and data["slug"] != organization.slug:
        if Organization.query.filter(Organization.slug == data["slug"], Organization.id != organization.id).first():
            raise Conflict("Slug already in use")
    apply_fields(organization, data)
    db.session.commit()
    return organization


def list_members(organization_id):
    return Member.query.filter_by(organization_id=organization_id).order_by(Member.created_at.asc()).all()


def add_member(organization_id, email, role="member"):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        raise NotFound("User not found")
    if Member.query.filter_by(organization_id=organization_id, user_id=user.id).first():
        raise Conflict("User is already a member of this organization")
    member = Member(organization_id=organization_id, user_id=user.id, role=role)
    db.session.add(member)
    db.session.commit()
    return member


def _get_member(organization_id, member_id):
    member = Member.query.filter_by(id=member_id, organization_id=organization_id).first()
    if not member:
        raise NotFound("Member not found")
    return member


def _ensure_not_last_owner(member):
    if member.role != "owner":
        return
    owners = Member.query.filter_by(organization_id=member.organization_id, role="owner").count()
    if owners <= 1:
        raise BadRequest("The organization must keep at least one owner")


def change_member_role(organization_id, member_id, role, acting_member):
    member = _get_member(organization_id, member_id)
    if role == "owner" and acting_member.role != "owner":
        raise Forbidden("Only owners can grant the owner role")
    if role != "owner":
        _ensure_not_last_owner(member)
    member.role = role
    db.session.commit()
    return member


def remove_member(organization_id, member_id):
    member = _get_member(organization_id, member_id)
    _ensure_not_last_owner(member)
    db.session.delete(member)
    db.session.commit()
