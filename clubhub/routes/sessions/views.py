from flask import g, jsonify, request

from clubhub.models import TrainingSession
from clubhub.models.constants import SESSION_STATUSES
from clubhub.routes import load_json
from clubhub.schemas.base import BulkIdsSchema, bulk_status_schema
from clubhub.schemas.sessions import (
    CompleteSessionSchema, SessionAthletesSchema, SessionCoachesSchema, TrainingSessionSchema,
)
from clubhub.services import sessions as service
from clubhub.services.common import bulk_delete, bulk_update
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_bool, arg_datetime, arg_int, arg_list, list_params, page_response

from . import sessions_bp

session_schema = TrainingSessionSchema()
complete_schema = CompleteSessionSchema()
athletes_schema = SessionAthletesSchema()
coaches_schema = SessionCoachesSchema()
bulk_ids_schema = BulkIdsSchema()
bulk_status = bulk_status_schema(SESSION_STATUSES)


@sessions_bp.route("", methods=["GET"])
@org_required()
def list_sessions():
    items, total = service.list_sessions(
        g.organization.id,
        list_params(default_sort="start_time"),
        query=request.args.get("query"),
        statuses=arg_list("status"),
        location_id=arg_int("location_id"),
        athlete_group_id=arg_int("athlete_group_id"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
        is_recurring=arg_bool("is_recurring"),
    )
    return jsonify(page_response(items, total)), 200


@sessions_bp.route("/calendar", methods=["GET"])
@org_required()
def calendar():
    items = service.calendar(
        g.organization.id,
        arg_datetime("from"),
        arg_datetime("to"),
        location_id=arg_int("location_id"),
        athlete_group_id=arg_int("athlete_group_id"),
    )
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@sessions_bp.route("/<int:session_id>", methods=["GET"])
@org_required()
def get_session(session_id):
    return jsonify(service.get_session(g.organization.id, session_id).to_dict()), 200


@sessions_bp.route("", methods=["POST"])
@org_required("manage_sessions")
def create_session():
    session = service.create_session(g.organization.id, g.current_user, load_json(session_schema))
    return jsonify({"msg": "Training session created", "session": session.to_dict()}), 201


@sessions_bp.route("/<int:session_id>", methods=["PATCH"])
@org_required("manage_sessions")
def update_session(session_id):
    data = load_json(session_schema, partial=True)
    session = service.update_session(g.organization.id, session_id, data)
    return jsonify({"msg": "Training session updated", "session": session.to_dict()}), 200


@sessions_bp.route("/<int:session_id>", methods=["DELETE"])
@org_required("manage_sessions")
def delete_session(session_id):
    service.delete_session(g.organization.id, session_id)
    return jsonify({"msg": "Training session deleted"}), 200


@sessions_bp.route("/<int:session_id>/complete", methods=["POST"])
@org_required("manage_sessions")
def complete_session(session_id):
    data = load_json(complete_schema)
    session = service.complete_session(g.organization.id, session_id, data.get("post_session_notes"))
    return jsonify({"msg": "Training session completed", "session": session.to_dict()}), 200


@sessions_bp.route("/<int:session_id>/athletes", methods=["PUT"])
@org_required("manage_sessions")
def update_athletes(session_id):
    data = load_json(athletes_schema)
    count = service.update_athletes(g.organization.id, session_id, data["athlete_ids"])
    return jsonify({"msg": "Athletes updated", "count": count}), 200


@sessions_bp.route("/<int:session_id>/coaches", methods=["PUT"])
@org_required("manage_sessions")
def update_coaches(session_id):
    data = load_json(coaches_schema)
    count = service.update_coaches(g.organization.id, session_id, data["coach_ids"], data.get("primary_coach_id"))
    return jsonify({"msg": "Coaches updated", "count": count}), 200


@sessions_bp.route("/bulk-delete", methods=["POST"])
@org_required("manage_sessions")
def bulk_delete_sessions():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(TrainingSession, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} sessions deleted", "count": count}), 200


@sessions_bp.route("/bulk-status", methods=["POST"])
@org_required("manage_sessions")
def bulk_update_status():
    data = load_json(bulk_status)
    count = bulk_update(TrainingSession, data["ids"], g.organization.id, {"status": data["status"]})
    return jsonify({"msg": f"{count} sessions updated", "count": count}), 200
