from flask import Blueprint

athletes_bp = Blueprint("athletes", __name__)

from . import views, sections  # noqa: E402,F401
