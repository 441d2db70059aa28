import aiosmtplib
import pytest
from flask_jwt_extended import create_access_token

from clubhub.extensions import socketio
from clubhub.models import NotificationLog
from clubhub.notifications import jobs, results, service, templates
from clubhub.notifications.channels import SENDERS, email, messaging

RECIPIENT = {"email": "ana@example.com", "phone": "+5491155555555", "name": "Ana"}


def _payload(**overrides):
    payload = {
        "channel": "sms",
        "to": dict(RECIPIENT),
        "template": "custom",
        "data": {"message": "Practice moved to 19:00"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def sleeps(monkeypatch):
    calls = []
    monkeypatch.setattr("clubhub.notifications.jobs.time.sleep", calls.append)
    return calls


@pytest.fixture
def all_channels(monkeypatch):
    monkeypatch.setattr(messaging, "is_configured", lambda: True)
    monkeypatch.setattr(email, "is_configured", lambda: True)


def _fake_sender(channel, outcomes, calls):
    def send(recipient, template, data, subject=None):
        calls.append(channel)
        return outcomes.pop(0) if outcomes else results.success(channel, message_id=f"{channel}-ok")
    return send


# Templates

def test_render_message_substitutes_variables():
    body = templates.render_message("welcome", {"app_name": "ClubHub", "name": "Ana"})
    assert body == "Welcome to ClubHub, Ana! We're excited to have you on board."


def test_render_message_reports_missing_variables():
    with pytest.raises(templates.TemplateError, match="code, expiry"):
        templates.render_message("verification-code", {"app_name": "ClubHub"})
    assert templates.missing_variables("payment-reminder", {"amount": "$10"}) == ["due_date", "payment_url"]
    with pytest.raises(templates.TemplateError):
        templates.render_message("nope", {})


def test_render_email_uses_default_subject(app):
    subject, html, text = templates.render_email("welcome", {
        "app_name": "ClubHub", "name": "Ana", "organization_name": "Test Club",
        "login_url": "http://localhost/login",
    })
    assert subject == "Welcome!"
    assert "Ana" in html
    assert text is None

    subject, _, text = templates.render_email("training-session-reminder", {
        "app_name": "ClubHub", "session_title": "U12", "date": "Monday", "time": "6:00 PM",
        "confirmation_url": "http://localhost/s/1",
    }, subject="Custom")
    assert subject == "Custom"
    assert "U12" in text


# Validation

def test_validate_payload():
    assert service.validate_payload(_payload()) == []
    errors = service.validate_payload({"channel": "fax"})
    assert errors == ["Unknown channel: fax", "Recipient is required", "Template is required"]
    errors = service.validate_payload(_payload(to={"phone": "1155555555"}))
    assert errors == ["Invalid phone format: 1155555555. Use E.164 format (+1234567890)"]
    errors = service.validate_payload(_payload(channel="email", to=[{"email": "a@x.com"}, {"phone": "+15550000"}]))
    assert errors == ["Email recipient must have email field"]


def test_invalid_payload_is_logged_as_failed(org):
    result = service.send(_payload(to={"name": "No phone"}), org.id)
    assert result["error"]["code"] == "validation_failed"
    log = NotificationLog.query.one()
    assert log.status == "failed"
    assert log.retryable is False


# Channels

def test_messaging_dev_mode_succeeds_without_twilio(app):
    result = messaging.send_sms(RECIPIENT, "custom", {"message": "hi"})
    assert result["success"] is True
    assert result["message_id"].startswith("dev_")


def test_email_not_configured(app):
    result = email.send(RECIPIENT, "welcome", {"name": "Ana"})
    assert result["error"]["code"] == "not_configured"


def test_email_send_builds_message(app, monkeypatch):
    sent = []
    monkeypatch.setattr(email, "is_configured", lambda: True)
    monkeypatch.setattr(email, "deliver", sent.append)

    result = email.send(RECIPIENT, "welcome", {"name": "Ana", "organization_name": "Test Club"})
    assert result["success"] is True
    assert sent[0]["To"] == "ana@example.com"
    assert sent[0]["Subject"] == "Welcome!"
    assert result["message_id"] == sent[0]["Message-ID"]


def test_email_smtp_errors_are_classified(app, monkeypatch):
    monkeypatch.setattr(email, "is_configured", lambda: True)

    def refuse(message):
        raise aiosmtplib.SMTPResponseException(550, "Mailbox unavailable")
    monkeypatch.setattr(email, "deliver", refuse)
    assert results.is_retryable(email.send(RECIPIENT, "welcome", {"name": "Ana"})) is False

    def timeout(message):
        raise aiosmtplib.SMTPServerDisconnected("Connection lost")
    monkeypatch.setattr(email, "deliver", timeout)
    assert results.is_retryable(email.send(RECIPIENT, "welcome", {"name": "Ana"})) is True


def test_twilio_retryable_statuses():
    assert messaging.is_retryable("http_503", 503) is True
    assert messaging.is_retryable("http_429", 429) is True
    assert messaging.is_retryable("invalid_phone", 400) is False
    assert messaging.is_retryable("unsubscribed", 500) is False


# Auto channel

def test_auto_falls_back_after_permanent_error(app, all_channels, monkeypatch):
    calls = []
    monkeypatch.setitem(SENDERS, "whatsapp", _fake_sender(
        "whatsapp", [results.failure("whatsapp", "invalid_template", "bad")], calls))
    monkeypatch.setitem(SENDERS, "sms", _fake_sender("sms", [], calls))

    result = service.deliver(_payload(channel="auto"))
    assert result["channel"] == "sms"
    assert calls == ["whatsapp", "sms"]


def test_auto_stops_on_retryable_error(app, all_channels, monkeypatch):
    calls = []
    monkeypatch.setitem(SENDERS, "whatsapp", _fake_sender(
        "whatsapp", [results.failure("whatsapp", "http_503", "down", retryable=True)], calls))
    monkeypatch.setitem(SENDERS, "sms", _fake_sender("sms", [], calls))

    result = service.deliver(_payload(channel="auto"))
    assert results.is_retryable(result)
    assert calls == ["whatsapp"]


def test_auto_skips_channels_the_recipient_cannot_receive(app, all_channels, monkeypatch):
    calls = []
    monkeypatch.setitem(SENDERS, "email", _fake_sender("email", [], calls))
    result = service.deliver(_payload(channel="auto", to={"email": "ana@example.com"}))
    assert result["channel"] == "email"
    assert calls == ["email"]


def test_auto_with_nothing_configured(app):
    result = service.deliver(_payload(channel="auto", priority=["email"]))
    assert result["error"]["code"] == "all_channels_failed"
    assert result["channel"] == "email"


# Retries and batches

def test_send_notification_retries_with_backoff(org, sleeps, monkeypatch):
    calls = []
    down = results.failure("sms", "http_503", "down", retryable=True)
    monkeypatch.setitem(SENDERS, "sms", _fake_sender("sms", [down, down], calls))

    result = jobs.send_notification(_payload(), org.id)
    assert result["success"] is True
    assert sleeps == [1, 2]

    log = NotificationLog.query.one()
    assert log.attempts == 3
    assert log.status == "sent"
    assert log.delivered_channel == "sms"


def test_send_notification_gives_up(org, sleeps, monkeypatch):
    down = results.failure("sms", "http_503", "down", retryable=True)
    monkeypatch.setitem(SENDERS, "sms", _fake_sender("sms", [down, down, down], []))
    result = jobs.send_notification(_payload(), org.id)
    assert result["success"] is False
    assert NotificationLog.query.one().attempts == 3


def test_permanent_failure_is_not_retried(org, sleeps, monkeypatch):
    calls = []
    monkeypatch.setitem(SENDERS, "sms", _fake_sender(
        "sms", [results.failure("sms", "invalid_phone", "bad")], calls))
    jobs.send_notification(_payload(), org.id)
    assert calls == ["sms"]
    assert sleeps == []


def test_backoff_delays_are_capped():
    assert jobs.backoff_delays({"attempts": 6, "min_wait": 1, "max_wait": 10, "factor": 2}) == [1, 2, 4, 8, 10]


def test_batch_retries_only_retryable_recipients(org, sleeps, monkeypatch):
    outcomes = {"+15550001": [results.failure("sms", "http_503", "down", retryable=True)]}
    calls = []

    def send(recipient, template, data, subject=None):
        calls.append(recipient["phone"])
        queued = outcomes.get(recipient["phone"])
        return queued.pop(0) if queued else results.success("sms")
    monkeypatch.setitem(SENDERS, "sms", send)

    summary = jobs.send_batch_notifications(_payload(to=[
        {"phone": "+15550001"}, {"phone": "+15550002"}, {"phone": "bad"},
    ]), org.id)
    assert summary["total"] == 3
    assert summary["successful"] == 2
    assert summary["failed"] == 1
    assert calls == ["+15550001", "+15550002", "+15550001"]
    assert sleeps == [2]


def test_schedule_future_notification(org, monkeypatch):
    jobs_added = []
    monkeypatch.setattr(jobs.scheduler, "add_job", lambda **kwargs: jobs_added.append(kwargs))
    outcome = jobs.schedule_notification(_payload(), "2099-01-01T10:00:00Z", org.id)
    assert outcome["scheduled"] is True
    assert outcome["send_at"] == "2099-01-01T10:00:00"
    assert jobs_added[0]["trigger"] == "date"
    assert jobs_added[0]["args"][1] == org.id


def test_schedule_past_sends_now(org):
    outcome = jobs.schedule_notification(_payload(), "2000-01-01T00:00:00", org.id)
    assert outcome["scheduled"] is False
    assert outcome["result"]["success"] is True


def test_retry_failed_notifications_reuses_log(app, org, monkeypatch):
    down = results.failure("sms", "http_503", "down", retryable=True)
    monkeypatch.setitem(SENDERS, "sms", _fake_sender("sms", [down], []))
    service.send(_payload(), org.id)

    summary = jobs.retry_failed_notifications()
    assert summary == {"retried": 1, "recovered": 1}
    log = NotificationLog.query.one()
    assert log.attempts == 2
    assert log.status == "sent"


# Routes

def test_send_route(client, admin_headers):
    res = client.post("/api/org/notifications/send", json=_payload(), headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["success"] is True

    res = client.post("/api/org/notifications/send", json=_payload(channel="email"), headers=admin_headers)
    assert res.status_code == 502
    assert res.get_json()["error"]["code"] == "not_configured"

    res = client.post("/api/org/notifications/send", json=_payload(to={"phone": "555"}), headers=admin_headers)
    assert res.status_code == 400


def test_send_route_schema_errors(client, admin_headers):
    res = client.post("/api/org/notifications/send", json=_payload(channel="pigeon"), headers=admin_headers)
    assert res.status_code == 400
    assert "channel" in res.get_json()["errors"]
    res = client.post("/api/org/notifications/send", json=_payload(to="ana@example.com"), headers=admin_headers)
    assert "to" in res.get_json()["errors"]


def test_send_route_batch_and_schedule(client, admin_headers, monkeypatch):
    res = client.post("/api/org/notifications/send",
                      json=_payload(to=[{"phone": "+15550001"}, {"phone": "+15550002"}]), headers=admin_headers)
    assert res.get_json()["successful"] == 2

    monkeypatch.setattr(jobs.scheduler, "add_job", lambda **kwargs: None)
    res = client.post("/api/org/notifications/send", json=_payload(send_at="2099-01-01T10:00:00"),
                      headers=admin_headers)
    assert res.status_code == 202
    assert res.get_json()["scheduled"] is True


def test_logs_route_filters(client, admin_headers, org):
    service.send(_payload(), org.id)
    service.send(_payload(channel="email"), org.id)
    res = client.get("/api/org/notifications?status=failed&status=bogus", headers=admin_headers)
    data = res.get_json()
    assert data["total"] == 1
    assert data["items"][0]["error"]["code"] == "not_configured"


def test_channels_route(client, admin_headers):
    assert client.get("/api/org/notifications/channels", headers=admin_headers).get_json() == {"channels": []}


def test_socket_members_receive_notification_events(app, client, org, owner):
    socket = socketio.test_client(app, flask_test_client=client)
    socket.emit("join_organization", {"token": create_access_token(identity=str(owner.id)),
                                      "organization_id": org.id})
    assert socket.get_received()[0]["name"] == "joined"

    service.send(_payload(), org.id)
    events = [event for event in socket.get_received() if event["name"] == "notification"]
    assert events[0]["args"][0]["status"] == "sent"
    socket.disconnect()


def test_socket_rejects_non_members(app, client, org, user_factory):
    outsider = user_factory()
    socket = socketio.test_client(app, flask_test_client=client)
    socket.emit("join_organization", {"token": create_access_token(identity=str(outsider.id)),
                                      "organization_id": org.id})
    assert socket.get_received()[0]["name"] == "error"
    socket.disconnect()
