from flask import g, jsonify, request

from clubhub.routes import load_json
from clubhub.schemas.events import EventStatusSchema, SportsEventSchema
from clubhub.services import events as service
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_datetime, arg_list, list_params, page_response

from . import events_bp

event_schema = SportsEventSchema()
status_schema = EventStatusSchema()


@events_bp.route("", methods=["GET"])
@org_required()
def list_events():
    items, total = service.list_events(
        g.organization.id,
        list_params(default_sort="start_date"),
        query=request.args.get("query"),
        statuses=arg_list("status"),
        event_types=arg_list("event_type"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
    )
    return jsonify(page_response(items, total)), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
@org_required()
def get_event(event_id):
    return jsonify(service.get_event(g.organization.id, event_id).to_dict()), 200


@events_bp.route("", methods=["POST"])
@org_required("manage_events")
def create_event():
    event = service.create_event(g.organization.id, g.current_user, load_json(event_schema))
    return jsonify({"msg": "Event created", "event": event.to_dict()}), 201


@events_bp.route("/<int:event_id>", methods=["PATCH"])
@org_required("manage_events")
def update_event(event_id):
    event = service.update_event(g.organization.id, event_id, load_json(event_schema, partial=True))
    return jsonify({"msg": "Event updated", "event": event.to_dict()}), 200


@events_bp.route("/<int:event_id>/status", methods=["POST"])
@org_required("manage_events")
def update_status(event_id):
    data = load_json(status_schema)
    event = service.update_status(g.organization.id, event_id, data["status"])
    return jsonify({"msg": "Event status updated", "event": event.to_dict()}), 200


@events_bp.route("/<int:event_id>", methods=["DELETE"])
@org_required("manage_events")
def delete_event(event_id):
    service.delete_event(g.organization.id, event_id)
    return jsonify({"msg": "Event deleted"}), 200
