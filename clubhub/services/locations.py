from sqlalchemy import or_

from clubhub.extensions import db
from clubhub.models import Location
from clubhub.services.common import apply_fields, get_scoped
from clubhub.utils.query import apply_sort, paginate

SORT_COLUMNS = {
    "name": Location.name,
    "city": Location.city,
    "capacity": Location.capacity,
    "created_at": Location.created_at,
}


def list_locations(organization_id, params, query=None, is_active=None):
    q = Location.query.filter(Location.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(Location.name.ilike(term), Location.address.ilike(term), Location.city.ilike(term)))
    if is_active is not None:
        q = q.filter(Location.is_active.is_(is_active))
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "name")
    return paginate(q, params["limit"], params["offset"])


def list_active(organization_id):
    return (
        Location.query.filter_by(organization_id=organization_id, is_active=True)
        .order_by(Location.name.asc())
        .all()
    )


def get_location(organization_id, location_id):
    return get_scoped(Location, location_id, organization_id, "Location not found")


def create_location(organization_id, data):
    location = Location(organization_id=organization_id, **data)
    db.session.add(location)
    db.session.commit()
    return location


def update_location(organization_id, location_id, data):
    location = get_location(organization_id, location_id)
    apply_fields(location, data)
    db.session.commit()
    return location


def delete_location(organization_id, location_id):
    location = get_location(organization_id, location_id)
    db.session.delete(location)
    db.session.commit()
