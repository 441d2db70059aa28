from flask import g, jsonify, request

from clubhub.models import Athlete
from clubhub.models.constants import ATHLETE_STATUSES
from clubhub.notifications.service import send_welcome
from clubhub.routes import load_json
from clubhub.schemas.athletes import AthleteCreateSchema, AthleteUpdateSchema
from clubhub.schemas.base import BulkIdsSchema, bulk_status_schema
from clubhub.services import athletes as service
from clubhub.services import sessions as session_service
from clubhub.services.common import bulk_delete, bulk_update
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_list, csv_response, list_params, page_response

from . import athletes_bp

create_schema = AthleteCreateSchema()
update_schema = AthleteUpdateSchema()
bulk_ids_schema = BulkIdsSchema()
bulk_status = bulk_status_schema(ATHLETE_STATUSES)


@athletes_bp.route("", methods=["GET"])
@org_required()
def list_athletes():
    items, total = service.list_athletes(
        g.organization.id,
        list_params(),
        query=request.args.get("query"),
        statuses=arg_list("status"),
        levels=arg_list("level"),
        sports=arg_list("sport"),
    )
    return jsonify(page_response(items, total)), 200


@athletes_bp.route("/<int:athlete_id>", methods=["GET"])
@org_required()
def get_athlete(athlete_id):
    athlete = service.get_athlete(g.organization.id, athlete_id)
    return jsonify(service.athlete_detail(athlete)), 200


@athletes_bp.route("", methods=["POST"])
@org_required("manage_athletes")
def create_athlete():
    data = load_json(create_schema)
    athlete, temporary_password = service.create_athlete(g.organization, data)
    if temporary_password:
        send_welcome(athlete.user, g.organization, temporary_password)
    return jsonify({"msg": "Athlete created", "athlete": athlete.to_dict()}), 201


@athletes_bp.route("/<int:athlete_id>", methods=["PATCH"])
@org_required("manage_athletes")
def update_athlete(athlete_id):
    data = load_json(update_schema, partial=True)
    athlete = service.update_athlete(g.organization.id, athlete_id, data)
    return jsonify({"msg": "Athlete updated", "athlete": athlete.to_dict()}), 200


@athletes_bp.route("/<int:athlete_id>", methods=["DELETE"])
@org_required("manage_athletes")
def delete_athlete(athlete_id):
    service.delete_athlete(g.organization.id, athlete_id)
    return jsonify({"msg": "Athlete deleted"}), 200


@athletes_bp.route("/bulk-delete", methods=["POST"])
@org_required("manage_athletes")
def bulk_delete_athletes():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(Athlete, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} athletes deleted", "count": count}), 200


@athletes_bp.route("/bulk-status", methods=["POST"])
@org_required("manage_athletes")
def bulk_update_status():
    data = load_json(bulk_status)
    count = bulk_update(Athlete, data["ids"], g.organization.id, {"status": data["status"]})
    return jsonify({"msg": f"{count} athletes updated", "count": count}), 200


@athletes_bp.route("/export", methods=["GET"])
@org_required("manage_athletes")
def export_athletes():
    headers, rows = service.export_rows(g.organization.id)
    return csv_response("athletes", headers, rows)


@athletes_bp.route("/<int:athlete_id>/attendance", methods=["GET"])
@org_required()
def athlete_attendance(athlete_id):
    records = session_service.list_athlete_attendance(g.organization.id, athlete_id)
    return jsonify({"items": [r.to_dict() for r in records], "total": len(records)}), 200
