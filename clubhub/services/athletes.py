import logging
import secrets

from sqlalchemy import or_

from clubhub.errors import Conflict, NotFound
from clubhub.extensions import db
from clubhub.models import (
    Athlete, AthleteAchievement, AthleteCareerHistory, AthleteEducation,
    AthleteLanguage, AthleteReference, AthleteSponsor, Member, User,
)
from clubhub.services.common import apply_fields, commit_or_conflict, get_scoped
from clubhub.utils.dates import utcnow
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

USER_FIELDS = ("name", "email")

SORT_COLUMNS = {
    "name": User.name,
    "created_at": Athlete.created_at,
    "level": Athlete.level,
    "sport": Athlete.sport,
    "status": Athlete.status,
    "birth_date": Athlete.birth_date,
}

# url segment -> (model, unique conflict message)
SECTIONS = {
    "career-history": (AthleteCareerHistory, None),
    "education": (AthleteEducation, None),
    "achievements": (AthleteAchievement, None),
    "languages": (AthleteLanguage, "This language is already on the profile"),
    "references": (AthleteReference, None),
    "sponsors": (AthleteSponsor, None),
}


def list_athletes(organization_id, params, query=None, statuses=None, levels=None, sports=None):
    q = Athlete.query.outerjoin(User, Athlete.user_id == User.id).filter(
        Athlete.organization_id == organization_id
    )
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(User.name.ilike(term), User.email.ilike(term), Athlete.sport.ilike(term)))
    if statuses:
        q = q.filter(Athlete.status.in_(statuses))
    if levels:
        q = q.filter(Athlete.level.in_(levels))
    if sports:
        q = q.filter(Athlete.sport.in_(sports))

    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "created_at")
    return paginate(q, params["limit"], params["offset"])


def get_athlete(organization_id, athlete_id):
    return get_scoped(Athlete, athlete_id, organization_id, "Athlete not found")


def athlete_detail(athlete):
    data = athlete.to_dict()
    data["groups"] = [
        {"id": m.group.id, "name": m.group.name} for m in athlete.group_memberships if m.group
    ]
    return data


def create_athlete(organization, data):
    """
    Creates an athlete in the organization, creating the user account when
    the email is unknown. Returns ``(athlete, temporary_password)``; the
    password is None for existing users.
    """
    data = dict(data)
    email = data.pop("email").strip().lower()
    name = data.pop("name")
    temporary_password = None

    user = User.query.filter_by(email=email).first()
    if user:
        existing = Athlete.query.filter_by(organization_id=organization.id, user_id=user.id).first()
        if existing:
            raise Conflict("An athlete with this email already exists in this organization")
    else:
        temporary_password = secrets.token_urlsafe(9)
        user = User(name=name, email=email, phone=data.get("phone"))
        user.set_password(temporary_password)
        db.session.add(user)
        db.session.flush()
        logger.info("Created user %s for athlete in organization %s", user.id, organization.id)

    if not Member.query.filter_by(organization_id=organization.id, user_id=user.id).first():
        db.session.add(Member(organization_id=organization.id, user_id=user.id, role="member"))

    athlete = Athlete(organization_id=organization.id, user_id=user.id)
    _apply_profile(athlete, data)
    db.session.add(athlete)
    db.session.commit()
    return athlete, temporary_password


def _apply_profile(athlete, data):
    was_public = athlete.is_public_profile
    apply_fields(athlete, data, exclude=USER_FIELDS)
    if athlete.is_public_profile and not was_public:
        athlete.public_profile_enabled_at = utcnow()
    return athlete


def update_athlete(organization_id, athlete_id, data):
    athlete = get_athlete(organization_id, athlete_id)
    return update_profile(athlete, data)


def update_profile(athlete, data):
    user = athlete.user
    email = data.get("email")
    if email and user:
        email = email.strip().lower()
        other = User.query.filter(User.email == email, User.id != user.id).first()
        if other:
            raise Conflict("Email already in use by another user")
        user.email = email
    if data.get("name") and user:
        user.name = data["name"]

    _apply_profile(athlete, data)
    db.session.commit()
    return athlete


def delete_athlete(organization_id, athlete_id):
    # The user and their membership stay in place
    athlete = get_athlete(organization_id, athlete_id)
    db.session.delete(athlete)
    db.session.commit()


def export_rows(organization_id):
    athletes = (
        Athlete.query.outerjoin(User, Athlete.user_id == User.id)
        .filter(Athlete.organization_id == organization_id)
        .order_by(User.name.asc())
        .all()
    )
    headers = [
        "Name", "Email", "Phone", "Sport", "Level", "Status", "Category",
        "Position", "Nationality", "Birth Date", "Created Date",
    ]
    rows = [
        [
            a.name, a.email, a.phone, a.sport, a.level, a.status, a.category,
            a.position, a.nationality,
            a.birth_date.strftime("%Y-%m-%d") if a.birth_date else "",
            a.created_at.strftime("%Y-%m-%d %H:%M") if a.created_at else "",
        ]
        for a in athletes
    ]
    return headers, rows


def get_my_athlete(user):
    athlete = Athlete.query.filter_by(user_id=user.id).order_by(Athlete.created_at.asc()).first()
    if not athlete:
        raise NotFound("Athlete profile not found")
    return athlete


# Profile sections

def section_model(section):
    if section not in SECTIONS:
        raise NotFound("Unknown profile section")
    return SECTIONS[section]


def list_section(athlete, section):
    model, _ = section_model(section)
    q = model.query.filter_by(athlete_id=athlete.id)
    if hasattr(model, "display_order"):
        q = q.order_by(model.display_order.asc(), model.created_at.asc())
    else:
        q = q.order_by(model.created_at.desc())
    return q.all()


def _get_section_item(athlete, section, item_id):
    model, _ = section_model(section)
    item = model.query.filter_by(id=item_id, athlete_id=athlete.id).first()
    if not item:
        raise NotFound(f"{section.replace('-', ' ').capitalize()} entry not found")
    return item


def create_section_item(athlete, section, data):
    model, conflict_message = section_model(section)
    item = model(athlete_id=athlete.id, **data)
    db.session.add(item)
    commit_or_conflict(conflict_message or "Entry already exists")
    return item


def update_section_item(athlete, section, item_id, data):
    _, conflict_message = section_model(section)
    item = _get_section_item(athlete, section, item_id)
    apply_fields(item, data)
    commit_or_conflict(conflict_message or "Entry already exists")
    return item


def delete_section_item(athlete, section, item_id):
    item = _get_section_item(athlete, section, item_id)
    db.session.delete(item)
    db.session.commit()
