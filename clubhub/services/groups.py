from sqlalchemy import or_

from clubhub.errors import BadRequest, Conflict
from clubhub.extensions import db
from clubhub.models import Athlete, AthleteGroup, AthleteGroupMember
from clubhub.services.common import apply_fields, commit_or_conflict, get_scoped, scoped_ids
from clubhub.utils.query import apply_sort, paginate

DUPLICATE_NAME = "A group with this name already exists"

SORT_COLUMNS = {
    "name": AthleteGroup.name,
    "sport": AthleteGroup.sport,
    "is_active": AthleteGroup.is_active,
    "created_at": AthleteGroup.created_at,
}


def list_groups(organization_id, params, query=None, is_active=None, sports=None):
    q = AthleteGroup.query.filter(AthleteGroup.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(AthleteGroup.name.ilike(term), AthleteGroup.description.ilike(term)))
    if is_active is not None:
        q = q.filter(AthleteGroup.is_active.is_(is_active))
    if sports:
        q = q.filter(AthleteGroup.sport.in_(sports))
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "name")
    return paginate(q, params["limit"], params["offset"])


def list_active(organization_id):
    return (
        AthleteGroup.query.filter_by(organization_id=organization_id, is_active=True)
        .order_by(AthleteGroup.name.asc())
        .all()
    )


def get_group(organization_id, group_id):
    return get_scoped(AthleteGroup, group_id, organization_id, "Athlete group not found")


def _ensure_unique_name(organization_id, name, exclude_id=None):
    q = AthleteGroup.query.filter_by(organization_id=organization_id, name=name)
    if exclude_id is not None:
        q = q.filter(AthleteGroup.id != exclude_id)
    if q.first():
        raise Conflict(DUPLICATE_NAME)


def create_group(organization_id, data):
    data = dict(data)
    athlete_ids = data.pop("athlete_ids", None) or []
    _ensure_unique_name(organization_id, data["name"])

    group = AthleteGroup(organization_id=organization_id, **data)
    db.session.add(group)
    db.session.flush()
    for athlete_id in scoped_ids(Athlete, athlete_ids, organization_id):
        db.session.add(AthleteGroupMember(group_id=group.id, athlete_id=athlete_id))
    commit_or_conflict(DUPLICATE_NAME)
    return group


def update_group(organization_id, group_id, data):
    group = get_group(organization_id, group_id)
    data = dict(data)
    data.pop("athlete_ids", None)
    if data.get("name") and data["name"] != group.name:
        _ensure_unique_name(organization_id, data["name"], exclude_id=group.id)
    apply_fields(group, data)
    commit_or_conflict(DUPLICATE_NAME)
    return group


def delete_group(organization_id, group_id):
    group = get_group(organization_id, group_id)
    db.session.delete(group)
    db.session.commit()


def add_members(organization_id, group_id, athlete_ids):
    group = get_group(organization_id, group_id)
    valid_ids = scoped_ids(Athlete, athlete_ids, organization_id)
    if not valid_ids:
        raise BadRequest("No valid athletes provided")

    existing = {m.athlete_id for m in group.members}
    new_ids = sorted(valid_ids - existing)
    for athlete_id in new_ids:
        db.session.add(AthleteGroupMember(group_id=group.id, athlete_id=athlete_id))
    db.session.commit()
    return len(new_ids)


def remove_members(organization_id, group_id, athlete_ids):
    group = get_group(organization_id, group_id)
    removed = AthleteGroupMember.query.filter(
        AthleteGroupMember.group_id == group.id,
        AthleteGroupMember.athlete_id.in_(athlete_ids),
    ).delete(synchronize_session=False)
    db.session.commit()
    db.session.expire(group)
    return removed


def set_members(organization_id, group_id, athlete_ids):
    group = get_group(organization_id, group_id)
    valid_ids = scoped_ids(Athlete, athlete_ids, organization_id)
    group.members.clear()
    db.session.flush()
    for athlete_id in sorted(valid_ids):
        group.members.append(AthleteGroupMember(athlete_id=athlete_id))
    db.session.commit()
    return len(valid_ids)


def list_my_groups(organization_id, user):
    athlete = Athlete.query.filter_by(organization_id=organization_id, user_id=user.id).first()
    if not athlete:
        return [], None
    groups = [m.group for m in athlete.group_memberships if m.group and m.group.is_active]
    return groups, athlete
