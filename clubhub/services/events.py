import logging

from sqlalchemy import case, func, or_

from clubhub.errors import BadRequest, NotFound
from clubhub.extensions import db
from clubhub.models import Athlete, EventRegistration, Location, SportsEvent
from clubhub.services.common import apply_fields, commit_or_conflict, get_scoped, unique_slug
from clubhub.utils.dates import utcnow
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

DUPLICATE_SLUG = "An event with this slug already exists"

SORT_COLUMNS = {
    "title": SportsEvent.title,
    "start_date": SportsEvent.start_date,
    "status": SportsEvent.status,
    "created_at": SportsEvent.created_at,
}
REGISTRATION_SORT_COLUMNS = {
    "registration_number": EventRegistration.registration_number,
    "registrant_name": EventRegistration.registrant_name,
    "status": EventRegistration.status,
    "registered_at": EventRegistration.registered_at,
}

# Statuses that hold a place in the event
ACTIVE_REGISTRATION_STATUSES = ("pending_payment", "confirmed")


def list_events(organization_id, params, query=None, statuses=None, event_types=None,
                date_from=None, date_to=None):
    q = SportsEvent.query.filter(SportsEvent.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(SportsEvent.title.ilike(term), SportsEvent.description.ilike(term)))
    if statuses:
        q = q.filter(SportsEvent.status.in_(statuses))
    if event_types:
        q = q.filter(SportsEvent.event_type.in_(event_types))
    if date_from:
        q = q.filter(SportsEvent.start_date >= date_from)
    if date_to:
        q = q.filter(SportsEvent.start_date <= date_to)
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "start_date")
    return paginate(q, params["limit"], params["offset"])


def get_event(organization_id, event_id):
    return get_scoped(SportsEvent, event_id, organization_id, "Event not found")


def _check_slug(organization_id, slug, exclude_id=None):
    q = SportsEvent.query.filter_by(organization_id=organization_id, slug=slug)
    if exclude_id is not None:
        q = q.filter(SportsEvent.id != exclude_id)
    if q.first():
        raise BadRequest(DUPLICATE_SLUG)


def create_event(organization_id, user, data):
    data = dict(data)
    if data.get("location_id"):
        get_scoped(Location, data["location_id"], organization_id, "Location not found")
    if data.get("slug"):
        _check_slug(organization_id, data["slug"])
    else:
        data["slug"] = unique_slug(SportsEvent, data["title"], organization_id=organization_id)

    event = SportsEvent(organization_id=organization_id, created_by=user.id, **data)
    db.session.add(event)
    commit_or_conflict(DUPLICATE_SLUG)
    logger.info("Event %s (%s) created in organization %s", event.id, event.slug, organization_id)
    return event


def update_event(organization_id, event_id, data):
    event = get_event(organization_id, event_id)
    if data.get("slug") and data["slug"] != event.slug:
        _check_slug(organization_id, data["slug"], exclude_id=event.id)
    if data.get("location_id"):
        get_scoped(Location, data["location_id"], organization_id, "Location not found")
    start = data.get("start_date", event.start_date)
    end = data.get("end_date", event.end_date)
    if end < start:
        raise BadRequest("End date must be on or after start date")
    apply_fields(event, data)
    commit_or_conflict(DUPLICATE_SLUG)
    return event


def update_status(organization_id, event_id, status):
    event = get_event(organization_id, event_id)
    event.status = status
    db.session.commit()
    return event


def delete_event(organization_id, event_id):
    event = get_event(organization_id, event_id)
    db.session.delete(event)
    db.session.commit()


# Registrations

def list_registrations(organization_id, event_id, params, query=None, statuses=None, is_waitlist=None):
    event = get_event(organization_id, event_id)
    q = EventRegistration.query.filter(EventRegistration.event_id == event.id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(
            EventRegistration.registrant_name.ilike(term),
            EventRegistration.registrant_email.ilike(term),
        ))
    if statuses:
        q = q.filter(EventRegistration.status.in_(statuses))
    if is_waitlist is True:
        q = q.filter(EventRegistration.status == "waitlist")
    elif is_waitlist is False:
        q = q.filter(EventRegistration.waitlist_position.is_(None))
    q = apply_sort(q, REGISTRATION_SORT_COLUMNS, params["sort_by"], params["sort_order"], "registration_number")
    return paginate(q, params["limit"], params["offset"])


def get_registration(organization_id, registration_id):
    return get_scoped(EventRegistration, registration_id, organization_id, "Registration not found")


def _waitlist_count(event_id):
    return EventRegistration.query.filter_by(event_id=event_id, status="waitlist").count()


def _take_place(event):
    """Increment the registration counter in SQL, only while the event has room. Returns True on success."""
    query = SportsEvent.query.filter(SportsEvent.id == event.id)
    if event.max_capacity is not None:
        query = query.filter(SportsEvent.current_registrations < SportsEvent.max_capacity)
    updated = query.update(
        {SportsEvent.current_registrations: SportsEvent.current_registrations + 1},
        synchronize_session=False,
    )
    return updated == 1


def _add_place(event_id):
    SportsEvent.query.filter(SportsEvent.id == event_id).update(
        {SportsEvent.current_registrations: SportsEvent.current_registrations + 1},
        synchronize_session=False,
    )


def _release_place(event_id):
    counter = SportsEvent.current_registrations
    SportsEvent.query.filter(SportsEvent.id == event_id).update(
        {counter: case((counter > 0, counter - 1), else_=0)},
        synchronize_session=False,
    )


def create_registration(organization_id, event_id, data):
    """Registers into the event, or onto its waitlist when it is full."""
    event = get_event(organization_id, event_id)
    data = dict(data)
    if data.get("athlete_id"):
        get_scoped(Athlete, data["athlete_id"], organization_id, "Athlete not found")

    last_number = db.session.query(func.max(EventRegistration.registration_number)).filter(
        EventRegistration.event_id == event.id
    ).scalar() or 0

    registration = EventRegistration(
        event_id=event.id,
        organization_id=organization_id,
        registration_number=last_number + 1,
        currency=event.currency,
        **data,
    )
    if _take_place(event):
        registration.status = "pending_payment"
    else:
        waitlisted = _waitlist_count(event.id)
        waitlist_open = event.max_waitlist_size is None or waitlisted < event.max_waitlist_size
        if not event.enable_waitlist or not waitlist_open:
            raise BadRequest("Event is full")
        registration.status = "waitlist"
        registration.waitlist_position = waitlisted + 1

    db.session.add(registration)
    commit_or_conflict("Registration number already taken, please retry")
    logger.info(
        "Registration #%s for event %s (%s)", registration.registration_number, event.id, registration.status
    )
    return registration


def update_registration(organization_id, registration_id, data):
    registration = get_registration(organization_id, registration_id)
    status = data.get("status")
    if status and status != registration.status:
        if status == "confirmed":
            registration.confirmed_at = utcnow()
        elif status == "cancelled":
            registration.cancelled_at = utcnow()
    apply_fields(registration, data)
    db.session.commit()
    return registration


def cancel_registration(organization_id, registration_id, reason=None):
    registration = get_registration(organization_id, registration_id)
    held_place = registration.status not in ("waitlist", "cancelled")

    registration.status = "cancelled"
    registration.cancelled_at = utcnow()
    registration.waitlist_position = None
    if reason:
        registration.internal_notes = f"{registration.internal_notes or ''}\nCancellation reason: {reason}".strip()
    if held_place:
        _release_place(registration.event_id)
    db.session.commit()
    return registration


def confirm_from_waitlist(organization_id, registration_id):
    registration = EventRegistration.query.filter_by(
        id=registration_id, organization_id=organization_id, status="waitlist"
    ).first()
    if not registration:
        raise NotFound("Waitlist registration not found")

    position = registration.waitlist_position
    registration.status = "pending_payment"
    registration.waitlist_position = None
    _add_place(registration.event_id)

    # Close the gap in the waitlist
    if position is not None:
        for other in EventRegistration.query.filter(
            EventRegistration.event_id == registration.event_id,
            EventRegistration.status == "waitlist",
            EventRegistration.waitlist_position > position,
        ).all():
            other.waitlist_position -= 1
    db.session.commit()
    return registration


def bulk_update_registration_status(organization_id, ids, status):
    updated = EventRegistration.query.filter(
        EventRegistration.organization_id == organization_id,
        EventRegistration.id.in_(ids),
    ).update({"status": status}, synchronize_session=False)
    db.session.commit()
    return updated
