import logging

from sqlalchemy import or_

from clubhub.errors import BadRequest, Conflict, NotFound
from clubhub.extensions import db
from clubhub.models import (
    Athlete, AthleteGroup, AthleteGroupMember, Attendance, Coach, Location,
    RecurringSessionException, TrainingSession, TrainingSessionAthlete,
    TrainingSessionCoach,
)
from clubhub.services.common import apply_fields, get_scoped, scoped_ids
from clubhub.utils import recurrence
from clubhub.utils.dates import utcnow
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "title": TrainingSession.title,
    "start_time": TrainingSession.start_time,
    "end_time": TrainingSession.end_time,
    "status": TrainingSession.status,
    "created_at": TrainingSession.created_at,
}

TIME_RANGE_ERROR = "End time must be after start time"
COACHES_ERROR = "One or more coaches not found in this organization"


def _filter_sessions(q, statuses=None, location_id=None, athlete_group_id=None,
                     date_from=None, date_to=None, is_recurring=None):
    if statuses:
        q = q.filter(TrainingSession.status.in_(statuses))
    if location_id:
        q = q.filter(TrainingSession.location_id == location_id)
    if athlete_group_id:
        q = q.filter(TrainingSession.athlete_group_id == athlete_group_id)
    if date_from:
        q = q.filter(TrainingSession.start_time >= date_from)
    if date_to:
        q = q.filter(TrainingSession.start_time <= date_to)
    if is_recurring is not None:
        q = q.filter(TrainingSession.is_recurring.is_(is_recurring))
    return q


def list_sessions(organization_id, params, query=None, **filters):
    q = TrainingSession.query.filter(TrainingSession.organization_id == organization_id)
    if query and query.strip():
        term = f"%{query.strip()}%"
        q = q.filter(or_(TrainingSession.title.ilike(term), TrainingSession.description.ilike(term)))
    q = _filter_sessions(q, **filters)
    q = apply_sort(q, SORT_COLUMNS, params["sort_by"], params["sort_order"], "created_at")
    return paginate(q, params["limit"], params["offset"])


def calendar(organization_id, date_from, date_to, location_id=None, athlete_group_id=None):
    """Concrete (non-template) sessions starting in the range."""
    if not date_from or not date_to:
        raise BadRequest("'from' and 'to' are required")
    q = TrainingSession.query.filter(
        TrainingSession.organization_id == organization_id,
        TrainingSession.start_time >= date_from,
        TrainingSession.start_time <= date_to,
        TrainingSession.is_recurring.is_(False),
    )
    q = _filter_sessions(q, location_id=location_id, athlete_group_id=athlete_group_id)
    return q.order_by(TrainingSession.start_time.asc()).all()


def get_session(organization_id, session_id):
    return get_scoped(TrainingSession, session_id, organization_id, "Training session not found")


def get_recurring_session(organization_id, session_id):
    session = TrainingSession.query.filter_by(
        id=session_id, organization_id=organization_id, is_recurring=True
    ).first()
    if not session:
        raise NotFound("Recurring session not found")
    return session


def _check_reference(model, object_id, organization_id, message):
    if object_id is not None:
        get_scoped(model, object_id, organization_id, message)


def _assign_coaches(session, organization_id, coach_ids, primary_coach_id=None):
    if len(scoped_ids(Coach, coach_ids, organization_id)) != len(set(coach_ids)):
        raise BadRequest(COACHES_ERROR)
    session.coaches.clear()
    db.session.flush()
    primary = primary_coach_id if primary_coach_id in coach_ids else coach_ids[0] if coach_ids else None
    for coach_id in dict.fromkeys(coach_ids):
        session.coaches.append(TrainingSessionCoach(coach_id=coach_id, is_primary=coach_id == primary))


def _assign_athletes(session, organization_id, athlete_ids):
    valid_ids = scoped_ids(Athlete, athlete_ids, organization_id)
    session.athletes.clear()
    db.session.flush()
    for athlete_id in sorted(valid_ids):
        session.athletes.append(TrainingSessionAthlete(athlete_id=athlete_id))
    return len(valid_ids)


def create_session(organization_id, user, data):
    data = dict(data)
    coach_ids = data.pop("coach_ids", None) or []
    primary_coach_id = data.pop("primary_coach_id", None)
    athlete_ids = data.pop("athlete_ids", None) or []
    recurrence_config = data.pop("recurrence", None)

    if data["end_time"] <= data["start_time"]:
        raise BadRequest(TIME_RANGE_ERROR)
    _check_reference(Location, data.get("location_id"), organization_id, "Location not found")
    _check_reference(AthleteGroup, data.get("athlete_group_id"), organization_id, "Athlete group not found")

    session = TrainingSession(organization_id=organization_id, created_by=user.id, **data)
    if recurrence_config:
        session.is_recurring = True
        session.rrule = recurrence.build_rrule_from_config(data["start_time"], recurrence_config)
    db.session.add(session)
    db.session.flush()

    if coach_ids:
        _assign_coaches(session, organization_id, coach_ids, primary_coach_id)
    # Individual athletes only apply when no group is set
    if not session.athlete_group_id and athlete_ids:
        _assign_athletes(session, organization_id, athlete_ids)

    db.session.commit()
    logger.info("Training session %s created in organization %s", session.id, organization_id)
    return session


def update_session(organization_id, session_id, data):
    session = get_session(organization_id, session_id)
    data = dict(data)
    coach_ids = data.pop("coach_ids", None)
    primary_coach_id = data.pop("primary_coach_id", None)
    athlete_ids = data.pop("athlete_ids", None)
    recurrence_config = data.pop("recurrence", None)

    start = data.get("start_time", session.start_time)
    end = data.get("end_time", session.end_time)
    if end <= start:
        raise BadRequest(TIME_RANGE_ERROR)
    if "location_id" in data:
        _check_reference(Location, data["location_id"], organization_id, "Location not found")
    if "athlete_group_id" in data:
        _check_reference(AthleteGroup, data["athlete_group_id"], organization_id, "Athlete group not found")

    apply_fields(session, data)
    if recurrence_config:
        session.is_recurring = True
        session.rrule = recurrence.build_rrule_from_config(session.start_time, recurrence_config)
    if coach_ids is not None:
        _assign_coaches(session, organization_id, coach_ids, primary_coach_id)
    if athlete_ids is not None:
        _assign_athletes(session, organization_id, athlete_ids)

    db.session.commit()
    return session


def delete_session(organization_id, session_id):
    session = get_session(organization_id, session_id)
    db.session.delete(session)
    db.session.commit()


def complete_session(organization_id, session_id, post_session_notes=None):
    session = get_session(organization_id, session_id)
    session.status = "completed"
    session.post_session_notes = post_session_notes
    db.session.commit()
    return session


def update_athletes(organization_id, session_id, athlete_ids):
    session = get_session(organization_id, session_id)
    count = _assign_athletes(session, organization_id, athlete_ids)
    db.session.commit()
    return count


def update_coaches(organization_id, session_id, coach_ids, primary_coach_id=None):
    session = get_session(organization_id, session_id)
    _assign_coaches(session, organization_id, coach_ids, primary_coach_id)
    db.session.commit()
    return len(set(coach_ids))


# Recurring sessions

def occurrences(organization_id, session_id, date_from, date_to):
    """Expands a recurring template in the range, minus cancelled or replaced dates."""
    session = get_recurring_session(organization_id, session_id)
    if not date_from or not date_to:
        raise BadRequest("'from' and 'to' are required")
    dates = recurrence.occurrences_between(session.rrule, date_from, date_to)
    dates = recurrence.filter_exceptions(dates, [e.exception_date for e in session.exceptions])
    return [
        dict(item, recurring_session_id=session.id, title=session.title)
        for item in recurrence.apply_duration(dates, session.duration_minutes)
    ]


def _ensure_no_exception(session, occurrence_date):
    existing = RecurringSessionException.query.filter_by(
        recurring_session_id=session.id, exception_date=occurrence_date
    ).first()
    if existing:
        raise Conflict("This occurrence has already been cancelled or modified")


def cancel_occurrence(organization_id, session_id, occurrence_date):
    session = get_recurring_session(organization_id, session_id)
    _ensure_no_exception(session, occurrence_date)
    exception = RecurringSessionException(
        recurring_session_id=session.id, exception_date=occurrence_date
    )
    db.session.add(exception)
    db.session.commit()
    return exception


def modify_occurrence(organization_id, session_id, user, occurrence_date, changes):
    """Replaces one occurrence with a concrete session."""
    template = get_recurring_session(organization_id, session_id)
    _ensure_no_exception(template, occurrence_date)

    start = changes.get("start_time") or occurrence_date
    end = changes.get("end_time") or start + (template.end_time - template.start_time)
    if end <= start:
        raise BadRequest(TIME_RANGE_ERROR)
    if "location_id" in changes:
        _check_reference(Location, changes["location_id"], organization_id, "Location not found")

    def pick(field):
        value = changes.get(field)
        return value if value is not None else getattr(template, field)

    replacement = TrainingSession(
        organization_id=organization_id,
        title=pick("title"),
        description=pick("description"),
        start_time=start,
        end_time=end,
        status=changes.get("status") or "pending",
        location_id=pick("location_id"),
        athlete_group_id=template.athlete_group_id,
        is_recurring=False,
        recurring_session_id=template.id,
        original_start_time=occurrence_date,
        objectives=pick("objectives"),
        planning=pick("planning"),
        created_by=user.id,
    )
    for assignment in template.coaches:
        replacement.coaches.append(
            TrainingSessionCoach(coach_id=assignment.coach_id, is_primary=assignment.is_primary)
        )
    for assignment in template.athletes:
        replacement.athletes.append(TrainingSessionAthlete(athlete_id=assignment.athlete_id))
    db.session.add(replacement)
    db.session.flush()

    db.session.add(RecurringSessionException(
        recurring_session_id=template.id,
        exception_date=occurrence_date,
        replacement_session_id=replacement.id,
    ))
    db.session.commit()
    return replacement


# Sessions of the calling user

def _my_sessions_query(organization_id, session_ids, statuses=None, date_from=None, date_to=None):
    q = TrainingSession.query.filter(
        TrainingSession.organization_id == organization_id,
        TrainingSession.id.in_(session_ids),
        TrainingSession.is_recurring.is_(False),
    )
    return _filter_sessions(q, statuses=statuses, date_from=date_from, date_to=date_to)


def list_my_sessions_as_coach(organization_id, user, params, **filters):
    coach = Coach.query.filter_by(organization_id=organization_id, user_id=user.id).first()
    if not coach:
        return [], 0, None
    session_ids = [
        row[0] for row in db.session.query(TrainingSessionCoach.session_id)
        .filter(TrainingSessionCoach.coach_id == coach.id).all()
    ]
    if not session_ids:
        return [], 0, coach
    q = _my_sessions_query(organization_id, session_ids, **filters)
    q = apply_sort(q, SORT_COLUMNS, "start_time", params["sort_order"], "start_time")
    items, total = paginate(q, params["limit"], params["offset"])
    return items, total, coach


def list_my_sessions_as_athlete(organization_id, user, params, **filters):
    athlete = Athlete.query.filter_by(organization_id=organization_id, user_id=user.id).first()
    if not athlete:
        return [], 0, None

    direct_ids = {
        row[0] for row in db.session.query(TrainingSessionAthlete.session_id)
        .filter(TrainingSessionAthlete.athlete_id == athlete.id).all()
    }
    group_ids = [
        row[0] for row in db.session.query(AthleteGroupMember.group_id)
        .filter(AthleteGroupMember.athlete_id == athlete.id).all()
    ]
    group_session_ids = set()
    if group_ids:
        group_session_ids = {
            row[0] for row in db.session.query(TrainingSession.id).filter(
                TrainingSession.organization_id == organization_id,
                TrainingSession.athlete_group_id.in_(group_ids),
            ).all()
        }

    session_ids = direct_ids | group_session_ids
    if not session_ids:
        return [], 0, athlete
    q = _my_sessions_query(organization_id, session_ids, **filters)
    q = apply_sort(q, SORT_COLUMNS, "start_time", params["sort_order"], "start_time")
    items, total = paginate(q, params["limit"], params["offset"])
    return items, total, athlete


# Attendance

def list_attendance(organization_id, session_id):
    session = get_session(organization_id, session_id)
    return Attendance.query.filter_by(session_id=session.id).all()


def list_athlete_attendance(organization_id, athlete_id):
    athlete = get_scoped(Athlete, athlete_id, organization_id, "Athlete not found")
    return (
        Attendance.query.join(TrainingSession, Attendance.session_id == TrainingSession.id)
        .filter(Attendance.athlete_id == athlete.id)
        .order_by(TrainingSession.start_time.desc())
        .all()
    )


def record_attendance(organization_id, session_id, records, user):
    """Upserts one attendance row per athlete."""
    session = get_session(organization_id, session_id)
    athlete_ids = [record["athlete_id"] for record in records]
    valid_ids = scoped_ids(Athlete, athlete_ids, organization_id)
    if not valid_ids:
        raise BadRequest("No valid athletes provided")

    existing = {
        a.athlete_id: a for a in Attendance.query.filter(
            Attendance.session_id == session.id, Attendance.athlete_id.in_(valid_ids)
        ).all()
    }
    now = utcnow()
    saved = []
    for record in records:
        if record["athlete_id"] not in valid_ids:
            continue
        attendance = existing.get(record["athlete_id"])
        if attendance is None:
            attendance = Attendance(session_id=session.id, athlete_id=record["athlete_id"])
            db.session.add(attendance)
            existing[record["athlete_id"]] = attendance
        attendance.status = record["status"]
        attendance.notes = record.get("notes")
        attendance.recorded_by = user.id
        if record["status"] in ("present", "late") and attendance.checked_in_at is None:
            attendance.checked_in_at = now
        saved.append(attendance)
    db.session.commit()
    return saved
