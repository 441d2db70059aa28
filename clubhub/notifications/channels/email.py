"""
Email channel

Renders the Jinja2 email templates and delivers them over SMTP with aiosmtplib.
"""

import asyncio
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import aiosmtplib
from flask import current_app

from clubhub.notifications import results
from clubhub.notifications.templates import TemplateError, render_email

logger = logging.getLogger(__name__)

CHANNEL = "email"

PERMANENT_ERRORS = (
    "invalid email",
    "email address is not valid",
    "unauthorized",
    "forbidden",
    "unsubscribed",
    "blocked",
    "spam",
    "bounce",
)


def is_configured():
    config = current_app.config
    return bool(config.get("SMTP_HOST") and config.get("SMTP_PORT") and config.get("MAIL_FROM_EMAIL"))


def is_permanent(error):
    """Rejected recipients, auth failures and 5xx replies are not worth retrying."""
    if isinstance(error, (aiosmtplib.SMTPRecipientsRefused, aiosmtplib.SMTPAuthenticationError)):
        return True
    if isinstance(error, aiosmtplib.SMTPResponseException) and error.code >= 500:
        return True
    message = str(error).lower()
    return any(fragment in message for fragment in PERMANENT_ERRORS)


def build_message(to_email, subject, html, text=None):
    config = current_app.config
    message = MIMEMultipart("alternative")
    message["From"] = f"{config['MAIL_FROM_NAME']} <{config['MAIL_FROM_EMAIL']}>"
    message["To"] = to_email
    message["Subject"] = subject
    message["Message-ID"] = make_msgid(domain=config["MAIL_FROM_EMAIL"].split("@")[-1])

    if text:
        message.attach(MIMEText(text, "plain", "utf-8"))
    message.attach(MIMEText(html, "html", "utf-8"))
    return message


async def _deliver(message, settings):
    implicit_tls = settings["use_tls"] and settings["port"] == 465
    async with aiosmtplib.SMTP(
        hostname=settings["host"],
        port=settings["port"],
        use_tls=implicit_tls,
        start_tls=settings["use_tls"] and not implicit_tls,
    ) as smtp:
        if settings["username"] and settings["password"]:
            await smtp.login(settings["username"], settings["password"])
        await smtp.send_message(message)


def deliver(message):
    config = current_app.config
    settings = {
        "host": config["SMTP_HOST"],
        "port": config["SMTP_PORT"],
        "username": config.get("SMTP_USERNAME"),
        "password": config.get("SMTP_PASSWORD"),
        "use_tls": config.get("SMTP_USE_TLS", True),
    }
    asyncio.run(_deliver(message, settings))


def send(recipient, template, data, subject=None):
    to_email = recipient.get("email")
    if not to_email:
        return results.failure(CHANNEL, "no_recipient", "Recipient has no email address")
    if not is_configured():
        return results.failure(CHANNEL, "not_configured", "Email service not configured")

    context = dict(data)
    context.setdefault("app_name", current_app.config["APP_NAME"])
    context.setdefault("recipient_name", recipient.get("name"))
    try:
        subject, html, text = render_email(template, context, subject)
    except TemplateError as e:
        return results.failure(CHANNEL, "invalid_template", str(e))

    message = build_message(to_email, subject, html, text)
    try:
        deliver(message)
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", to_email, e)
        return results.failure(CHANNEL, "email_send_failed", str(e), retryable=not is_permanent(e))

    logger.info("Email sent to %s: %s", to_email, subject)
    return results.success(CHANNEL, message_id=message["Message-ID"])
