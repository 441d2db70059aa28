import logging
import secrets

from sqlalchemy import or_

from clubhub.errors import Conflict, NotFound
from clubhub.extensions import db
from clubhub.models import (
    Coach, CoachAchievement, CoachEducation, CoachSportsExperience, Member, User,
)
from clubhub.services.common import apply_fields, get_scoped
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": User.name,
    "specialty": Coach.specialty,
    "status": Coach.status,
    "created_at": Coach.created_at,
}

SECTIONS = {
    "sports-experience": CoachSportsExperience,
    "achievements": CoachAchievement,
    "education": CoachEducation,
}


def list_coaches(organization_id, params, query=None, statuses=None):
    q = Coach.query.join(User, Coach.user_id == User.id).filter(Coach.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(Coach.specialty.ilike(term), User.name.ilike(term), User.email.ilike(term)))
    if statuses:
        q = q.filter(Coach.status.in_(statuses))
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "created_at")
    return paginate(q, params["limit"], params["offset"])


def get_coach(organization_id, coach_id):
    return get_scoped(Coach, coach_id, organization_id, "Coach not found")


def coach_detail(coach):
    data = coach.to_dict()
    data["sports_experience"] = [item.to_dict() for item in coach.sports_experience]
    data["achievements"] = [item.to_dict() for item in coach.achievements]
    data["education"] = [item.to_dict() for item in coach.education]
    return data


def create_coach(organization, data):
    """Returns ``(coach, temporary_password)``."""
    data = dict(data)
    email = data.pop("email").strip().lower()
    name = data.pop("name")
    temporary_password = None

    user = User.query.filter_by(email=email).first()
    if user:
        if Coach.query.filter_by(organization_id=organization.id, user_id=user.id).first():
            raise Conflict("A coach with this email already exists in this organization")
    else:
        temporary_password = secrets.token_urlsafe(9)
        user = User(name=name, email=email, phone=data.get("phone"))
        user.set_password(temporary_password)
        db.session.add(user)
        db.session.flush()
        logger.info("Created user %s for coach in organization %s", user.id, organization.id)

    member = Member.query.filter_by(organization_id=organization.id, user_id=user.id).first()
    if not member:
        db.session.add(Member(organization_id=organization.id, user_id=user.id, role="staff"))
    elif member.role == "member":
        member.role = "staff"

    coach = Coach(organization_id=organization.id, user_id=user.id)
    apply_fields(coach, data)
    db.session.add(coach)
    db.session.commit()
    return coach, temporary_password


def update_coach(coach, data):
    data = dict(data)
    name = data.pop("name", None)
    if name and coach.user:
        coach.user.name = name
    apply_fields(coach, data)
    db.session.commit()
    return coach


def delete_coach(organization_id, coach_id):
    coach = get_coach(organization_id, coach_id)
    db.session.delete(coach)
    db.session.commit()


def export_rows(organization_id, ids=None):
    q = Coach.query.join(User, Coach.user_id == User.id).filter(Coach.organization_id == organization_id)
    if ids:
        q = q.filter(Coach.id.in_(ids))
    headers = ["Name", "Email", "Phone", "Sport", "Specialty", "Status", "Created Date"]
    rows = [
        [
            c.name, c.user.email if c.user else "", c.phone, c.sport, c.specialty, c.status,
            c.created_at.strftime("%Y-%m-%d %H:%M") if c.created_at else "",
        ]
        for c in q.order_by(User.name.asc()).all()
    ]
    return headers, rows


def get_my_coach(user, organization_id=None):
    q = Coach.query.filter_by(user_id=user.id)
    if organization_id:
        q = q.filter_by(organization_id=organization_id)
    coach = q.order_by(Coach.created_at.asc()).first()
    if not coach:
        raise NotFound("Coach profile not found")
    return coach


def section_model(section):
    if section not in SECTIONS:
        raise NotFound("Unknown profile section")
    return SECTIONS[section]


def list_section(coach, section):
    model = section_model(section)
    q = model.query.filter_by(coach_id=coach.id)
    if hasattr(model, "display_order"):
        return q.order_by(model.display_order.asc(), model.created_at.asc()).all()
    return q.order_by(model.start_date.desc()).all()


def _get_section_item(coach, section, item_id):
    model = section_model(section)
    item = model.query.filter_by(id=item_id, coach_id=coach.id).first()
    if not item:
        raise NotFound(f"{section.replace('-', ' ').capitalize()} entry not found")
    return item


def create_section_item(coach, section, data):
    item = section_model(section)(coach_id=coach.id, **data)
    db.session.add(item)
    db.session.commit()
    return item


def update_section_item(coach, section, item_id, data):
    item = _get_section_item(coach, section, item_id)
    apply_fields(item, data)
    db.session.commit()
    return item


def delete_section_item(coach, section, item_id):
    item = _get_section_item(coach, section, item_id)
    db.session.delete(item)
    db.session.commit()
