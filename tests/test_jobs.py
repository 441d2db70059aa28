from datetime import datetime, timedelta

import pytest

from clubhub.extensions import db
from clubhub.models import NotificationLog
from clubhub.notifications import jobs, results
from clubhub.notifications.channels import SENDERS, email, messaging
from clubhub.services import groups, sessions

# 09:00 in Buenos Aires (UTC-3)
NOW = datetime(2030, 1, 7, 12, 0)


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(email, "is_configured", lambda: True)
    monkeypatch.setattr(email, "deliver", sent.append)
    return sent


def _text_part(message):
    return message.get_payload()[0].get_payload(decode=True).decode("utf-8")


def _session(org, owner, start, **extra):
    return sessions.create_session(org.id, owner, dict({
        "title": "U14 practice", "start_time": start, "end_time": start + timedelta(hours=1),
    }, **extra))


def test_daily_summary_sends_full_schedule_to_each_coach(org, owner, coach_factory, athlete_factory, outbox):
    laura = coach_factory(org, name="Laura")
    pablo = coach_factory(org, name="Pablo")
    idle_coach = coach_factory(org)
    athletes = [athlete_factory(org) for _ in range(3)]
    # 18:00 and 20:00 local tomorrow
    _session(org, owner, datetime(2030, 1, 8, 21, 0), title="Alpha", coach_ids=[laura.id],
             athlete_ids=[a.id for a in athletes])
    _session(org, owner, datetime(2030, 1, 8, 23, 0), title="Beta", coach_ids=[pablo.id],
             athlete_ids=[athletes[0].id])
    # today, and the day after tomorrow
    _session(org, owner, datetime(2030, 1, 7, 22, 0), coach_ids=[idle_coach.id])
    _session(org, owner, datetime(2030, 1, 9, 12, 0), coach_ids=[idle_coach.id])

    totals = jobs.daily_training_summary(now=NOW)
    assert totals == {"organizations": 1, "coaches": 2, "sessions": 2}

    assert sorted(message["To"] for message in outbox) == sorted([laura.user.email, pablo.user.email])
    for message in outbox:
        assert message["Subject"] == "Your Daily Training Summary"
        body = _text_part(message)
        assert "Tuesday, January 08, 2030" in body
        assert "Alpha: 6:00 PM - 7:00 PM at TBD, 3 athletes" in body
        assert "Beta: 8:00 PM - 9:00 PM at TBD, 1 athletes" in body
        assert "Total: 2 sessions, 4 athletes." in body
    assert "Hi Laura," in _text_part(next(m for m in outbox if m["To"] == laura.user.email))

    logs = NotificationLog.query.all()
    assert {log.template for log in logs} == {"daily-session-summary"}
    assert {log.organization_id for log in logs} == {org.id}


def test_daily_summary_with_nothing_scheduled(org, outbox):
    assert jobs.daily_training_summary(now=NOW) == {"organizations": 0, "coaches": 0, "sessions": 0}
    assert outbox == []


def test_session_reminders_window(org, owner, athlete_factory, monkeypatch):
    reminded = []

    def whatsapp(recipient, template, data, subject=None):
        reminded.append((recipient["name"], data["session_title"], data["time"]))
        return results.success("whatsapp")
    monkeypatch.setattr(messaging, "is_configured", lambda: True)
    monkeypatch.setitem(SENDERS, "whatsapp", whatsapp)

    athlete = athlete_factory(org, name="Martina", phone="+5491155550000")
    _session(org, owner, NOW + timedelta(hours=24, minutes=30), athlete_ids=[athlete.id], title="Due")
    _session(org, owner, NOW + timedelta(hours=26), athlete_ids=[athlete.id], title="Too late")
    cancelled = _session(org, owner, NOW + timedelta(hours=24, minutes=10), athlete_ids=[athlete.id])
    cancelled.status = "cancelled"
    db.session.commit()

    assert jobs.session_reminders(now=NOW) == {"sessions": 1, "sent": 1}
    assert reminded == [("Martina", "Due", "9:30 AM")]


def test_session_reminders_reach_group_members(org, owner, athlete_factory, monkeypatch):
    reminded = []

    def whatsapp(recipient, template, data, subject=None):
        reminded.append(recipient["name"])
        return results.success("whatsapp")
    monkeypatch.setattr(messaging, "is_configured", lambda: True)
    monkeypatch.setitem(SENDERS, "whatsapp", whatsapp)

    martina = athlete_factory(org, name="Martina", phone="+5491155550000")
    outsider = athlete_factory(org, name="Outsider", phone="+5491155550001")
    group = groups.create_group(org.id, {"name": "U12", "athlete_ids": [martina.id]})
    _session(org, owner, NOW + timedelta(hours=24, minutes=30), athlete_group_id=group.id,
             athlete_ids=[outsider.id])

    assert jobs.session_reminders(now=NOW) == {"sessions": 1, "sent": 1}
    assert reminded == ["Martina"]


def test_session_reminders_retry_retryable_failures(org, owner, athlete_factory, monkeypatch):
    outcomes = [
        results.failure("whatsapp", "twilio_unavailable", "Service unavailable", retryable=True),
        results.success("whatsapp"),
    ]
    sleeps = []
    monkeypatch.setattr("clubhub.notifications.jobs.time.sleep", sleeps.append)
    monkeypatch.setattr(messaging, "is_configured", lambda: True)
    monkeypatch.setitem(SENDERS, "whatsapp", lambda *args, **kwargs: outcomes.pop(0))

    athlete = athlete_factory(org, phone="+5491155550000")
    _session(org, owner, NOW + timedelta(hours=24, minutes=30), athlete_ids=[athlete.id])

    assert jobs.session_reminders(now=NOW) == {"sessions": 1, "sent": 1}
    assert sleeps == [1]
    log = NotificationLog.query.one()
    assert log.status == "sent"
    assert log.attempts == 2


def test_register_jobs_adds_cron_jobs(app, monkeypatch):
    registered = []
    monkeypatch.setattr(jobs.scheduler, "task", lambda *args, **kwargs: (
        lambda func: registered.append((args[0], kwargs["id"])) or func
    ))
    jobs.register_jobs(app)
    assert registered == [
        ("cron", "daily_training_summary"),
        ("cron", "session_reminders"),
        ("cron", "retry_failed_notifications"),
    ]
