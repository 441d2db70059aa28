"""
Notification dispatch

``send`` delivers one payload through email, sms, whatsapp or ``auto``
(first available channel in priority order), records the attempt in
NotificationLog and pushes it to the organization's Socket.IO room.

A payload looks like::

    {
        "channel": "auto",
        "to": {"email": "ana@example.com", "phone": "+5491155555555", "name": "Ana"},
        "template": "training-session-reminder",
        "data": {"session_title": "U12 practice", "date": "...", ...},
        "subject": None,
        "priority": ["whatsapp", "sms", "email"],
    }
"""

import logging

from flask import current_app

from clubhub.extensions import db, socketio
from clubhub.models import NotificationLog
from clubhub.notifications import results
from clubhub.notifications.channels import SENDERS, email, messaging
from clubhub.sockets import organization_room
from clubhub.utils.dates import utcnow
from clubhub.utils.query import apply_sort, paginate

logger = logging.getLogger(__name__)

AUTO = "auto"


def recipients(payload):
    to = payload.get("to")
    if not to:
        return []
    return to if isinstance(to, list) else [to]


def _first_recipient(payload):
    found = recipients(payload)
    return found[0] if found else None


def available_channels(recipient=None):
    """Configured channels, narrowed to what the recipient can receive when given."""
    channels = []
    if messaging.is_configured():
        if recipient is None or messaging.is_valid_phone(recipient.get("phone")):
            channels.extend(["whatsapp", "sms"])
    if email.is_configured():
        if recipient is None or recipient.get("email"):
            channels.append("email")
    return channels


def validate_payload(payload):
    errors = []
    channel = payload.get("channel")

    if not channel:
        errors.append("Channel is required")
    elif channel != AUTO and channel not in results.CHANNELS:
        errors.append(f"Unknown channel: {channel}")
    if not payload.get("to"):
        errors.append("Recipient is required")
    if not payload.get("template"):
        errors.append("Template is required")

    if channel == "email":
        for recipient in recipients(payload):
            if not recipient.get("email"):
                errors.append("Email recipient must have email field")

    if channel in ("sms", "whatsapp"):
        for recipient in recipients(payload):
            phone = recipient.get("phone")
            if not phone:
                errors.append("Phone recipient must have phone field")
            elif not messaging.is_valid_phone(phone):
                errors.append(f"Invalid phone format: {phone}. Use E.164 format (+1234567890)")

    return errors


def _priority(payload):
    return payload.get("priority") or list(results.DEFAULT_PRIORITY)


def _send_auto(payload, recipient):
    priority = _priority(payload)
    available = available_channels(recipient)

    for channel in priority:
        if channel not in available:
            continue
        result = SENDERS[channel](recipient, payload["template"], payload.get("data") or {}, payload.get("subject"))
        if result["success"]:
            return result
        if not results.is_retryable(result):
            logger.warning("Channel %s failed with permanent error, trying next: %s", channel, result["error"])
            continue
        return result

    return results.failure(priority[0] if priority else "email", "all_channels_failed", "All notification channels failed")


def deliver(payload):
    """Send without logging. Returns a result dict."""
    channel = payload.get("channel")
    errors = validate_payload(payload)
    if errors:
        fallback = channel if channel in results.CHANNELS else _priority(payload)[0]
        return results.failure(fallback, "validation_failed", "; ".join(errors))

    recipient = _first_recipient(payload)
    logger.info("Sending notification via %s: %s", channel, payload["template"])
    if channel == AUTO:
        return _send_auto(payload, recipient)
    return SENDERS[channel](recipient, payload["template"], payload.get("data") or {}, payload.get("subject"))


def record(result, payload, organization_id=None, log=None):
    if log is None:
        log = NotificationLog(
            organization_id=organization_id,
            channel=payload.get("channel") or AUTO,
            template=payload.get("template") or "",
            recipient=_first_recipient(payload) or {},
            payload=payload,
            attempts=0,
        )
        db.session.add(log)

    log.attempts = (log.attempts or 0) + 1
    log.status = result["status"]
    log.delivered_channel = result["channel"] if result["success"] else None
    log.message_id = result["message_id"]
    error = result["error"] or {}
    log.error_code = error.get("code")
    log.error_message = error.get("message")
    log.retryable = bool(error.get("retryable"))
    if result["success"]:
        log.sent_at = utcnow()
    db.session.commit()

    if log.organization_id:
        socketio.emit("notification", log.to_dict(), to=organization_room(log.organization_id))
    return log


def send(payload, organization_id=None, log=None):
    result = deliver(payload)
    record(result, payload, organization_id, log)
    return result


SORT_COLUMNS = {
    "created_at": NotificationLog.created_at,
    "status": NotificationLog.status,
    "channel": NotificationLog.channel,
}


def list_logs(organization_id, params, statuses=None, channel=None, template=None):
    query = NotificationLog.query.filter(NotificationLog.organization_id == organization_id)
    if statuses:
        query = query.filter(NotificationLog.status.in_(statuses))
    if channel:
        query = query.filter(NotificationLog.channel == channel)
    if template:
        query = query.filter(NotificationLog.template == template)

    query = apply_sort(query, SORT_COLUMNS, params["sort_by"], params["sort_order"], "created_at")
    return paginate(query, params["limit"], params["offset"])


def send_welcome(user, organization, temporary_password=None):
    """Welcome email for accounts created on someone's behalf."""
    payload = {
        "channel": "email",
        "to": {"email": user.email, "name": user.name},
        "template": "welcome",
        "data": {
            "name": user.name,
            "organization_name": organization.name,
            "temporary_password": temporary_password,
            "login_url": f"{current_app.config['APP_URL']}/login",
        },
    }
    return send(payload, organization.id)
