from flask import Blueprint

events_bp = Blueprint("events", __name__)

from . import views, registrations, organization  # noqa: E402,F401
