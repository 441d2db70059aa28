from flask import Blueprint

sessions_bp = Blueprint("sessions", __name__)

from . import views, recurring, attendance  # noqa: E402,F401
