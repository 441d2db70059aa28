"""
SMS and WhatsApp channel

Messages are rendered from the ``{{var}}`` templates and sent through Twilio.
"""

import logging
import re
import time

from flask import current_app
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from clubhub.notifications import results
from clubhub.notifications.templates import TemplateError, render_message

logger = logging.getLogger(__name__)

E164 = re.compile(r"^\+[1-9]\d{1,14}$")

PERMANENT_ERROR_CODES = (
    "invalid_phone",
    "invalid_template",
    "unauthorized",
    "forbidden",
    "blocked",
    "unsubscribed",
)

# Twilio error codes -> our codes
TWILIO_ERROR_CODES = {
    20003: "unauthorized",
    20403: "forbidden",
    21211: "invalid_phone",
    21214: "invalid_phone",
    21614: "invalid_phone",
    21610: "unsubscribed",
    30004: "blocked",
    63016: "invalid_template",
}

STATUS_MAP = {
    "accepted": "queued",
    "queued": "queued",
    "scheduled": "queued",
    "sending": "pending",
    "sent": "sent",
    "delivered": "delivered",
    "read": "delivered",
    "failed": "failed",
    "undelivered": "failed",
}


def is_valid_phone(phone):
    return bool(phone and E164.match(phone))


def is_configured():
    config = current_app.config
    return bool(config.get("TWILIO_ACCOUNT_SID") and config.get("TWILIO_AUTH_TOKEN"))


def get_client():
    config = current_app.config
    return Client(config["TWILIO_ACCOUNT_SID"], config["TWILIO_AUTH_TOKEN"])


def error_code(error):
    return TWILIO_ERROR_CODES.get(error.code) or f"http_{error.status}"


def is_retryable(code, status):
    if code in PERMANENT_ERROR_CODES:
        return False
    return status == 429 or status >= 500


def _sender(channel):
    config = current_app.config
    if channel == "whatsapp":
        sender = config.get("TWILIO_WHATSAPP_FROM") or ""
        return sender if sender.startswith("whatsapp:") else f"whatsapp:{sender}"
    return config.get("TWILIO_SMS_FROM")


def send_message(channel, recipient, template, data):
    phone = recipient.get("phone")
    if not phone:
        return results.failure(channel, "no_recipient", "Recipient has no phone number")
    if not is_valid_phone(phone):
        return results.failure(channel, "invalid_phone", f"Invalid phone format: {phone}")

    context = dict(data)
    context.setdefault("app_name", current_app.config["APP_NAME"])
    context.setdefault("name", recipient.get("name"))
    try:
        body = render_message(template, context)
    except TemplateError as e:
        return results.failure(channel, "invalid_template", str(e))

    if not is_configured():
        if current_app.debug or current_app.testing:
            logger.warning("Twilio not configured, %s to %s not sent: %s", channel.upper(), phone, body)
            return results.success(channel, message_id=f"dev_{int(time.time() * 1000)}")
        return results.failure(channel, "not_configured", "Messaging service not configured")

    to = f"whatsapp:{phone}" if channel == "whatsapp" else phone
    try:
        message = get_client().messages.create(from_=_sender(channel), body=body, to=to)
    except TwilioRestException as e:
        code = error_code(e)
        logger.error("Failed to send %s to %s: %s", channel, phone, e.msg)
        return results.failure(channel, code, e.msg, retryable=is_retryable(code, e.status))
    except OSError as e:
        logger.error("Failed to reach Twilio for %s to %s: %s", channel, phone, e)
        return results.failure(channel, "send_failed", str(e), retryable=True)

    logger.info("%s sent to %s: %s", channel.upper(), phone, message.sid)
    return results.success(channel, message_id=message.sid, status=STATUS_MAP.get(message.status, "pending"))


def send_sms(recipient, template, data, subject=None):
    return send_message("sms", recipient, template, data)


def send_whatsapp(recipient, template, data, subject=None):
    return send_message("whatsapp", recipient, template, data)
