from flask import g, jsonify, request

from clubhub.models.constants import REGISTRATION_STATUSES
from clubhub.routes import load_json
from clubhub.schemas.base import bulk_status_schema
from clubhub.schemas.events import RegistrationSchema, RegistrationUpdateSchema
from clubhub.services import events as service
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_bool, arg_list, list_params, page_response

from . import events_bp

registration_schema = RegistrationSchema()
registration_update_schema = RegistrationUpdateSchema()
bulk_status = bulk_status_schema(REGISTRATION_STATUSES)


@events_bp.route("/<int:event_id>/registrations", methods=["GET"])
@org_required()
def list_registrations(event_id):
    items, total = service.list_registrations(
        g.organization.id,
        event_id,
        list_params(default_sort="registration_number", default_order="asc"),
        query=request.args.get("query"),
        statuses=arg_list("status"),
        is_waitlist=arg_bool("is_waitlist"),
    )
    return jsonify(page_response(items, total)), 200


@events_bp.route("/<int:event_id>/registrations", methods=["POST"])
@org_required("manage_events")
def create_registration(event_id):
    registration = service.create_registration(g.organization.id, event_id, load_json(registration_schema))
    msg = "Added to waitlist" if registration.status == "waitlist" else "Registration created"
    return jsonify({"msg": msg, "registration": registration.to_dict()}), 201


@events_bp.route("/registrations/<int:registration_id>", methods=["GET"])
@org_required()
def get_registration(registration_id):
    return jsonify(service.get_registration(g.organization.id, registration_id).to_dict()), 200


@events_bp.route("/registrations/<int:registration_id>", methods=["PATCH"])
@org_required("manage_events")
def update_registration(registration_id):
    data = load_json(registration_update_schema, partial=True)
    registration = service.update_registration(g.organization.id, registration_id, data)
    return jsonify({"msg": "Registration updated", "registration": registration.to_dict()}), 200


@events_bp.route("/registrations/<int:registration_id>/cancel", methods=["POST"])
@org_required("manage_events")
def cancel_registration(registration_id):
    reason = (request.get_json(silent=True) or {}).get("reason")
    registration = service.cancel_registration(g.organization.id, registration_id, reason)
    return jsonify({"msg": "Registration cancelled", "registration": registration.to_dict()}), 200


@events_bp.route("/registrations/<int:registration_id>/confirm-waitlist", methods=["POST"])
@org_required("manage_events")
def confirm_from_waitlist(registration_id):
    registration = service.confirm_from_waitlist(g.organization.id, registration_id)
    return jsonify({"msg": "Registration confirmed from waitlist", "registration": registration.to_dict()}), 200


@events_bp.route("/registrations/bulk-status", methods=["POST"])
@org_required("manage_events")
def bulk_update_status():
    data = load_json(bulk_status)
    count = service.bulk_update_registration_status(g.organization.id, data["ids"], data["status"])
    return jsonify({"msg": f"{count} registrations updated", "count": count}), 200
