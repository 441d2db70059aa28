"""Email (Jinja2) and SMS/WhatsApp (``{{var}}``) notification templates."""

import logging
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from clubhub.filters import register_filters

logger = logging.getLogger(__name__)

EMAIL_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

EMAIL_SUBJECTS = {
    "training-session-reminder": "Training Session Reminder",
    "daily-session-summary": "Your Daily Training Summary",
    "welcome": "Welcome!",
    "organization-invitation": "You've been invited to join",
    "payment-reminder": "Payment reminder",
}

MESSAGE_TEMPLATES = {
    "welcome": {
        "content": "Welcome to {{app_name}}, {{name}}! We're excited to have you on board.",
        "variables": ["app_name", "name"],
        "max_length": 160,
    },
    "verification-code": {
        "content": "Your {{app_name}} verification code is: {{code}}. Valid for {{expiry}} minutes.",
        "variables": ["app_name", "code", "expiry"],
        "max_length": 160,
    },
    "appointment-reminder": {
        "content": (
            "Reminder: You have an appointment on {{date}} at {{time}}. "
            "Reply CONFIRM to confirm or CANCEL to reschedule."
        ),
        "variables": ["date", "time"],
        "max_length": 160,
    },
    "payment-reminder": {
        "content": "Payment reminder: Your invoice of {{amount}} is due on {{due_date}}. Pay now: {{payment_url}}",
        "variables": ["amount", "due_date", "payment_url"],
        "max_length": 160,
    },
    "training-session-reminder": {
        "content": 'Reminder: Training "{{session_title}}" on {{date}} at {{time}}. Confirm: {{confirmation_url}}',
        "variables": ["session_title", "date", "time", "confirmation_url"],
        "max_length": 160,
    },
    "custom": {
        "content": "{{message}}",
        "variables": ["message"],
        "max_length": None,
    },
}

_PLACEHOLDER = re.compile(r"{{(\w+)}}")

_email_env = Environment(
    loader=FileSystemLoader(str(EMAIL_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)
register_filters(_email_env)


class TemplateError(ValueError):
    """Unknown template or missing variables."""


def is_email_template(name):
    return name in EMAIL_SUBJECTS


def is_message_template(name):
    return name in MESSAGE_TEMPLATES


def render_email(name, data, subject=None):
    """Returns ``(subject, html, text)``; ``text`` is None without a .txt template."""
    if name not in EMAIL_SUBJECTS:
        raise TemplateError(f"Unknown email template: {name}")
    html = _email_env.get_template(f"{name}.html").render(**data)
    try:
        text = _email_env.get_template(f"{name}.txt").render(**data)
    except TemplateNotFound:
        text = None
    return subject or EMAIL_SUBJECTS[name], html, text


def missing_variables(name, data):
    template = MESSAGE_TEMPLATES.get(name)
    if template is None:
        return [f"Unknown template: {name}"]
    return [var for var in template["variables"] if data.get(var) is None]


def render_message(name, data):
    template = MESSAGE_TEMPLATES.get(name)
    if template is None:
        raise TemplateError(f"Unknown template: {name}")

    content = template["content"]
    for key, value in data.items():
        content = content.replace("{{%s}}" % key, str(value))

    unreplaced = _PLACEHOLDER.findall(content)
    if unreplaced:
        raise TemplateError(f"Missing variables in template {name}: {', '.join(unreplaced)}")
    if template["max_length"] and len(content) > template["max_length"]:
        logger.warning("Template %s exceeds max length (%s/%s)", name, len(content), template["max_length"])
    return content
