from flask import g, jsonify

from clubhub.routes import load_json
from clubhub.schemas.sessions import ModifyOccurrenceSchema, OccurrenceSchema
from clubhub.services import sessions as service
from clubhub.utils.dates import iso
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_datetime

from . import sessions_bp

occurrence_schema = OccurrenceSchema()
modify_schema = ModifyOccurrenceSchema()


@sessions_bp.route("/<int:session_id>/occurrences", methods=["GET"])
@org_required()
def list_occurrences(session_id):
    items = service.occurrences(g.organization.id, session_id, arg_datetime("from"), arg_datetime("to"))
    items = [dict(item, start_time=iso(item["start_time"]), end_time=iso(item["end_time"])) for item in items]
    return jsonify({"items": items, "total": len(items)}), 200


@sessions_bp.route("/<int:session_id>/occurrences/cancel", methods=["POST"])
@org_required("manage_sessions")
def cancel_occurrence(session_id):
    data = load_json(occurrence_schema)
    exception = service.cancel_occurrence(g.organization.id, session_id, data["occurrence_date"])
    return jsonify({"msg": "Occurrence cancelled", "exception": exception.to_dict()}), 201


@sessions_bp.route("/<int:session_id>/occurrences/modify", methods=["POST"])
@org_required("manage_sessions")
def modify_occurrence(session_id):
    data = load_json(modify_schema)
    occurrence_date = data.pop("occurrence_date")
    session = service.modify_occurrence(g.organization.id, session_id, g.current_user, occurrence_date, data)
    return jsonify({"msg": "Occurrence modified", "session": session.to_dict()}), 201
