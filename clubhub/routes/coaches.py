from flask import Blueprint, g, jsonify, request

from clubhub.errors import NotFound
from clubhub.models import Coach
from clubhub.models.constants import COACH_STATUSES
from clubhub.notifications.service import send_welcome
from clubhub.routes import load_json
from clubhub.schemas.athletes import COACH_SECTION_SCHEMAS, CoachCreateSchema, CoachUpdateSchema
from clubhub.schemas.base import BulkIdsSchema, bulk_status_schema
from clubhub.services import coaches as service
from clubhub.services.common import bulk_delete, bulk_update
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_ids, arg_list, csv_response, list_params, page_response

coaches_bp = Blueprint("coaches", __name__)
create_schema = CoachCreateSchema()
update_schema = CoachUpdateSchema()
bulk_ids_schema = BulkIdsSchema()
bulk_status = bulk_status_schema(COACH_STATUSES)


@coaches_bp.route("", methods=["GET"])
@org_required()
def list_coaches():
    items, total = service.list_coaches(
        g.organization.id, list_params(), query=request.args.get("query"), statuses=arg_list("status")
    )
    return jsonify(page_response(items, total)), 200


@coaches_bp.route("/<int:coach_id>", methods=["GET"])
@org_required()
def get_coach(coach_id):
    return jsonify(service.coach_detail(service.get_coach(g.organization.id, coach_id))), 200


@coaches_bp.route("", methods=["POST"])
@org_required("manage_coaches")
def create_coach():
    data = load_json(create_schema)
    coach, temporary_password = service.create_coach(g.organization, data)
    if temporary_password:
        send_welcome(coach.user, g.organization, temporary_password)
    return jsonify({"msg": "Coach created", "coach": coach.to_dict()}), 201


@coaches_bp.route("/<int:coach_id>", methods=["PATCH"])
@org_required("manage_coaches")
def update_coach(coach_id):
    data = load_json(update_schema, partial=True)
    coach = service.update_coach(service.get_coach(g.organization.id, coach_id), data)
    return jsonify({"msg": "Coach updated", "coach": coach.to_dict()}), 200


@coaches_bp.route("/<int:coach_id>", methods=["DELETE"])
@org_required("manage_coaches")
def delete_coach(coach_id):
    service.delete_coach(g.organization.id, coach_id)
    return jsonify({"msg": "Coach deleted"}), 200


@coaches_bp.route("/bulk-delete", methods=["POST"])
@org_required("manage_coaches")
def bulk_delete_coaches():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(Coach, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} coaches deleted", "count": count}), 200


@coaches_bp.route("/bulk-status", methods=["POST"])
@org_required("manage_coaches")
def bulk_update_status():
    data = load_json(bulk_status)
    count = bulk_update(Coach, data["ids"], g.organization.id, {"status": data["status"]})
    return jsonify({"msg": f"{count} coaches updated", "count": count}), 200


@coaches_bp.route("/export", methods=["GET"])
@org_required("manage_coaches")
def export_coaches():
    headers, rows = service.export_rows(g.organization.id, arg_ids())
    return csv_response("coaches", headers, rows)


def _section_schema(section):
    if section not in COACH_SECTION_SCHEMAS:
        raise NotFound("Unknown profile section")
    return COACH_SECTION_SCHEMAS[section]()


@coaches_bp.route("/<int:coach_id>/<section>", methods=["GET"])
@org_required()
def list_section(coach_id, section):
    coach = service.get_coach(g.organization.id, coach_id)
    items = service.list_section(coach, section)
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@coaches_bp.route("/<int:coach_id>/<section>", methods=["POST"])
@org_required("manage_coaches")
def create_section_item(coach_id, section):
    coach = service.get_coach(g.organization.id, coach_id)
    item = service.create_section_item(coach, section, load_json(_section_schema(section)))
    return jsonify(item.to_dict()), 201


@coaches_bp.route("/<int:coach_id>/<section>/<int:item_id>", methods=["PATCH"])
@org_required("manage_coaches")
def update_section_item(coach_id, section, item_id):
    coach = service.get_coach(g.organization.id, coach_id)
    item = service.update_section_item(coach, section, item_id, load_json(_section_schema(section), partial=True))
    return jsonify(item.to_dict()), 200


@coaches_bp.route("/<int:coach_id>/<section>/<int:item_id>", methods=["DELETE"])
@org_required("manage_coaches")
def delete_section_item(coach_id, section, item_id):
    coach = service.get_coach(g.organization.id, coach_id)
    service.delete_section_item(coach, section, item_id)
    return jsonify({"msg": "Entry deleted"}), 200
