from flask import g, jsonify

from clubhub.routes import load_json
from clubhub.schemas.sessions import AttendanceSchema
from clubhub.services import sessions as service
from clubhub.utils.decorators import org_required

from . import sessions_bp

attendance_schema = AttendanceSchema()


@sessions_bp.route("/<int:session_id>/attendance", methods=["GET"])
@org_required()
def list_attendance(session_id):
    records = service.list_attendance(g.organization.id, session_id)
    return jsonify({"items": [r.to_dict() for r in records], "total": len(records)}), 200


@sessions_bp.route("/<int:session_id>/attendance", methods=["POST"])
@org_required("manage_sessions")
def record_attendance(session_id):
    data = load_json(attendance_schema)
    records = service.record_attendance(g.organization.id, session_id, data["records"], g.current_user)
    return jsonify({"msg": "Attendance recorded", "items": [r.to_dict() for r in records]}), 200
