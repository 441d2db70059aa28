from datetime import timedelta

from sqlalchemy import func

from clubhub.extensions import db
from clubhub.models import Athlete, AthleteGroup, Attendance, Coach, TrainingSession
from clubhub.utils.dates import utcnow, week_start

WEEKS = 12
ATTENDANCE_DAYS = 30
UPCOMING_DAYS = 7
UPCOMING_LIMIT = 5


def _count(model, organization_id, *criteria):
    return (
        db.session.query(func.count(model.id))
        .filter(model.organization_id == organization_id, *criteria)
        .scalar()
    )


def _split(total, active):
    return {"total": total, "active": active, "inactive": total - active}


def get_stats(organization_id):
    concrete = TrainingSession.is_recurring.is_(False)
    return {
        "athletes": _split(
            _count(Athlete, organization_id),
            _count(Athlete, organization_id, Athlete.status == "active"),
        ),
        "coaches": _split(
            _count(Coach, organization_id),
            _count(Coach, organization_id, Coach.status == "active"),
        ),
        "groups": _split(
            _count(AthleteGroup, organization_id),
            _count(AthleteGroup, organization_id, AthleteGroup.is_active.is_(True)),
        ),
        "sessions": {
            "total": _count(TrainingSession, organization_id, concrete),
            "completed": _count(
                TrainingSession, organization_id, concrete, TrainingSession.status == "completed"
            ),
            "pending": _count(
                TrainingSession, organization_id, concrete,
                TrainingSession.status.in_(("pending", "confirmed")),
            ),
        },
    }


def sessions_over_time(organization_id, now=None):
    """Per-week session counts for the last twelve weeks, oldest first."""
    now = now or utcnow()
    current_week = week_start(now)
    weeks = [current_week - timedelta(weeks=i) for i in range(WEEKS - 1, -1, -1)]
    buckets = {week: {"completed": 0, "pending": 0, "cancelled": 0} for week in weeks}

    rows = (
        db.session.query(TrainingSession.start_time, TrainingSession.status)
        .filter(
            TrainingSession.organization_id == organization_id,
            TrainingSession.start_time >= weeks[0],
            TrainingSession.is_recurring.is_(False),
        )
        .all()
    )
    for start_time, status in rows:
        bucket = buckets.get(week_start(start_time))
        if bucket is None:
            continue
        if status in ("completed", "cancelled"):
            bucket[status] += 1
        else:
            bucket["pending"] += 1

    return [dict(week=week.date().isoformat(), **buckets[week]) for week in weeks]


def attendance_stats(organization_id, now=None):
    since = (now or utcnow()) - timedelta(days=ATTENDANCE_DAYS)
    rows = (
        db.session.query(Attendance.status, func.count(Attendance.id))
        .join(TrainingSession, Attendance.session_id == TrainingSession.id)
        .filter(
            TrainingSession.organization_id == organization_id,
            TrainingSession.start_time >= since,
            TrainingSession.is_recurring.is_(False),
        )
        .group_by(Attendance.status)
        .all()
    )
    counts = {"present": 0, "absent": 0, "late": 0, "excused": 0}
    for status, count in rows:
        if status in counts:
            counts[status] = count

    total = sum(counts.values())
    rate = (counts["present"] + counts["late"]) * 100 / total if total else 0
    return dict(counts, total=total, attendance_rate=round(rate, 1))


def upcoming_sessions(organization_id, now=None):
    now = now or utcnow()
    return (
        TrainingSession.query.filter(
            TrainingSession.organization_id == organization_id,
            TrainingSession.start_time >= now,
            TrainingSession.start_time <= now + timedelta(days=UPCOMING_DAYS),
            TrainingSession.is_recurring.is_(False),
            TrainingSession.status.in_(("pending", "confirmed")),
        )
        .order_by(TrainingSession.start_time.asc())
        .limit(UPCOMING_LIMIT)
        .all()
    )
