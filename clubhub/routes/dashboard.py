from flask import Blueprint, g, jsonify

from clubhub.services import dashboard as service
from clubhub.utils.decorators import org_required

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/stats", methods=["GET"])
@org_required()
def stats():
    return jsonify(service.get_stats(g.organization.id)), 200


@dashboard_bp.route("/sessions-over-time", methods=["GET"])
@org_required()
def sessions_over_time():
    return jsonify(service.sessions_over_time(g.organization.id)), 200


@dashboard_bp.route("/attendance", methods=["GET"])
@org_required()
def attendance():
    return jsonify(service.attendance_stats(g.organization.id)), 200


@dashboard_bp.route("/upcoming-sessions", methods=["GET"])
@org_required()
def upcoming_sessions():
    sessions = service.upcoming_sessions(g.organization.id)
    return jsonify([session.to_dict() for session in sessions]), 200
