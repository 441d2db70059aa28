"""
Scheduled and retried notification jobs.

Cron jobs are registered on the shared APScheduler instance by
``register_jobs`` and run inside the application context.
"""

import logging
import time
from datetime import timedelta

from flask import current_app

from clubhub.extensions import db, scheduler
from clubhub.models import NotificationLog, Organization, TrainingSession
from clubhub.notifications import results, service
from clubhub.utils.dates import format_in_timezone, parse_datetime, tomorrow_bounds, utcnow

logger = logging.getLogger(__name__)

SEND_POLICY = {"attempts": 3, "min_wait": 1, "max_wait": 10, "factor": 2}
BATCH_POLICY = {"attempts": 2, "min_wait": 2, "max_wait": 30, "factor": 2}

REMINDER_WINDOW = (timedelta(hours=24), timedelta(hours=25))


def backoff_delays(policy):
    """Waits between attempts: min_wait * factor**n, capped at max_wait."""
    return [
        min(policy["min_wait"] * policy["factor"] ** n, policy["max_wait"])
        for n in range(policy["attempts"] - 1)
    ]


def _with_retry(attempt, should_retry, policy, label):
    delays = backoff_delays(policy)
    outcome = attempt()
    for number, delay in enumerate(delays, start=2):
        if not should_retry(outcome):
            break
        logger.warning("%s failed, retrying in %ss (attempt %s/%s)", label, delay, number, policy["attempts"])
        time.sleep(delay)
        outcome = attempt()
    return outcome


def send_notification(payload, organization_id=None):
    """Send one notification, retrying retryable failures. Every attempt is logged."""
    log = None

    def attempt():
        nonlocal log
        result = service.deliver(payload)
        log = service.record(result, payload, organization_id, log)
        return result

    return _with_retry(attempt, results.is_retryable, SEND_POLICY, f"Notification {payload.get('template')}")


def send_batch_notifications(payload, organization_id=None):
    """Send to every recipient, then retry the recipients whose failure was retryable."""
    recipients = service.recipients(payload)
    collected = [None] * len(recipients)
    pending = list(range(len(recipients)))

    def attempt():
        for index in list(pending):
            collected[index] = service.send(dict(payload, to=recipients[index]), organization_id)
            if not results.is_retryable(collected[index]):
                pending.remove(index)
        return bool(pending)

    _with_retry(attempt, bool, BATCH_POLICY, f"Batch {payload.get('template')}")
    return results.batch(collected)


def _run_scheduled(payload, organization_id):
    with scheduler.app.app_context():
        send_notification(payload, organization_id)


def schedule_notification(payload, send_at, organization_id=None):
    """Send now when ``send_at`` is past, otherwise queue a one-off job. Returns the job id or the result."""
    send_at = parse_datetime(send_at)
    if send_at is None or send_at <= utcnow():
        return {"scheduled": False, "result": send_notification(payload, organization_id)}

    job_id = f"notification-{payload.get('template')}-{int(time.time() * 1000)}"
    scheduler.add_job(
        id=job_id,
        func=_run_scheduled,
        trigger="date",
        run_date=send_at,
        timezone="UTC",
        args=[payload, organization_id],
    )
    logger.info("Scheduled notification %s for %s", job_id, send_at.isoformat())
    return {"scheduled": True, "job_id": job_id, "send_at": send_at.isoformat()}


def _coach_names(session):
    return [assignment.coach.name for assignment in session.coaches if assignment.coach]


def format_session(session, timezone_name):
    start = format_in_timezone(session.start_time, timezone_name, "time")
    end = format_in_timezone(session.end_time, timezone_name, "time")
    return {
        "title": session.title,
        "time": f"{start} - {end}",
        "location": session.location.name if session.location else "TBD",
        "coaches": _coach_names(session),
        "athlete_count": session.athlete_count,
        "group_name": session.athlete_group.name if session.athlete_group else None,
    }


def _sessions_between(organization_id, start, end):
    return (
        TrainingSession.query.filter(
            TrainingSession.organization_id == organization_id,
            TrainingSession.start_time >= start,
            TrainingSession.start_time <= end,
            TrainingSession.status.in_(("pending", "confirmed")),
            TrainingSession.is_recurring.is_(False),
        )
        .order_by(TrainingSession.start_time.asc())
        .all()
    )


def daily_training_summary(now=None):
    """Email each coach working tomorrow (organization time) the organization's full schedule."""
    now = now or utcnow()
    app_name = current_app.config["APP_NAME"]
    totals = {"organizations": 0, "coaches": 0, "sessions": 0}

    for organization in Organization.query.all():
        start, end = tomorrow_bounds(organization.timezone, now)
        sessions = _sessions_between(organization.id, start, end)
        if not sessions:
            continue

        totals["organizations"] += 1
        totals["sessions"] += len(sessions)

        # Every coach working tomorrow gets the whole organization schedule
        formatted = [format_session(session, organization.timezone) for session in sessions]
        total_athletes = sum(item["athlete_count"] for item in formatted)
        coaches = {}
        for session in sessions:
            for assignment in session.coaches:
                coach = assignment.coach
                if coach is None or coach.user is None or not coach.user.email:
                    continue
                coaches.setdefault(coach.id, coach)

        summary_date = format_in_timezone(start, organization.timezone, "date")
        for coach in coaches.values():
            payload = {
                "channel": "email",
                "to": {"email": coach.user.email, "name": coach.name},
                "template": "daily-session-summary",
                "data": {
                    "app_name": app_name,
                    "recipient_name": coach.name,
                    "organization_name": organization.name,
                    "summary_date": summary_date,
                    "sessions": formatted,
                    "total_sessions": len(formatted),
                    "total_athletes": total_athletes,
                },
            }
            try:
                send_notification(payload, organization.id)
                totals["coaches"] += 1
            except Exception:
                logger.exception("Daily summary failed for coach %s", coach.id)
                db.session.rollback()

    logger.info(
        "Daily training summary: %s organizations, %s coaches, %s sessions",
        totals["organizations"], totals["coaches"], totals["sessions"],
    )
    return totals


def _athlete_recipient(athlete):
    user = athlete.user
    return {
        "email": user.email if user else None,
        "phone": athlete.phone or (user.phone if user else None),
        "name": athlete.name,
    }


def session_reminders(now=None):
    """Remind athletes of sessions starting 24 to 25 hours from now."""
    now = now or utcnow()
    app_url = current_app.config["APP_URL"]
    sessions = (
        TrainingSession.query.filter(
            TrainingSession.start_time >= now + REMINDER_WINDOW[0],
            TrainingSession.start_time < now + REMINDER_WINDOW[1],
            TrainingSession.status.in_(("pending", "confirmed")),
            TrainingSession.is_recurring.is_(False),
        )
        .all()
    )

    sent = 0
    for session in sessions:
        timezone_name = session.organization.timezone if session.organization else "UTC"
        data = {
            "session_title": session.title,
            "date": format_in_timezone(session.start_time, timezone_name, "date"),
            "time": format_in_timezone(session.start_time, timezone_name, "time"),
            "location": session.location.name if session.location else None,
            "coach_name": session.primary_coach.name if session.primary_coach else None,
            "confirmation_url": f"{app_url}/sessions/{session.id}",
        }
        for athlete in session.assigned_athletes:
            payload = {
                "channel": "auto",
                "to": _athlete_recipient(athlete),
                "template": "training-session-reminder",
                "data": data,
            }
            try:
                if send_notification(payload, session.organization_id)["success"]:
                    sent += 1
            except Exception:
                logger.exception("Session reminder failed for athlete %s", athlete.id)
                db.session.rollback()

    logger.info("Session reminders: %s sessions, %s reminders sent", len(sessions), sent)
    return {"sessions": len(sessions), "sent": sent}


def retry_failed_notifications():
    max_attempts = current_app.config["NOTIFICATION_MAX_ATTEMPTS"]
    logs = NotificationLog.query.filter(
        NotificationLog.status == "failed",
        NotificationLog.retryable.is_(True),
        NotificationLog.attempts < max_attempts,
    ).all()

    recovered = 0
    for log in logs:
        result = service.send(log.payload, log.organization_id, log)
        if result["success"]:
            recovered += 1

    logger.info("Retried %s failed notifications, %s recovered", len(logs), recovered)
    return {"retried": len(logs), "recovered": recovered}


def register_jobs(app):
    @scheduler.task("cron", id="daily_training_summary", hour=6, minute=0)
    def daily_training_summary_job():
        with app.app_context():
            daily_training_summary()

    @scheduler.task("cron", id="session_reminders", minute=0)
    def session_reminders_job():
        with app.app_context():
            session_reminders()

    @scheduler.task("cron", id="retry_failed_notifications", minute=30)
    def retry_failed_notifications_job():
        with app.app_context():
            retry_failed_notifications()
