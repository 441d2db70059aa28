from flask import Blueprint, g, jsonify, request

from clubhub.models import Location
from clubhub.routes import load_json
from clubhub.schemas.base import BulkActiveSchema, BulkIdsSchema
from clubhub.schemas.organizations import LocationSchema
from clubhub.services import locations as service
from clubhub.services.common import bulk_delete, bulk_update
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_bool, list_params, page_response

locations_bp = Blueprint("locations", __name__)
location_schema = LocationSchema()
bulk_ids_schema = BulkIdsSchema()
bulk_active_schema = BulkActiveSchema()


@locations_bp.route("", methods=["GET"])
@org_required()
def list_locations():
    items, total = service.list_locations(
        g.organization.id,
        list_params(default_sort="name", default_order="asc"),
        query=request.args.get("query"),
        is_active=arg_bool("is_active"),
    )
    return jsonify(page_response(items, total)), 200


@locations_bp.route("/active", methods=["GET"])
@org_required()
def list_active_locations():
    items = service.list_active(g.organization.id)
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@locations_bp.route("/<int:location_id>", methods=["GET"])
@org_required()
def get_location(location_id):
    return jsonify(service.get_location(g.organization.id, location_id).to_dict()), 200


@locations_bp.route("", methods=["POST"])
@org_required("admin")
def create_location():
    location = service.create_location(g.organization.id, load_json(location_schema))
    return jsonify({"msg": "Location created", "location": location.to_dict()}), 201


@locations_bp.route("/<int:location_id>", methods=["PATCH"])
@org_required("admin")
def update_location(location_id):
    location = service.update_location(g.organization.id, location_id, load_json(location_schema, partial=True))
    return jsonify({"msg": "Location updated", "location": location.to_dict()}), 200


@locations_bp.route("/<int:location_id>", methods=["DELETE"])
@org_required("admin")
def delete_location(location_id):
    service.delete_location(g.organization.id, location_id)
    return jsonify({"msg": "Location deleted"}), 200


@locations_bp.route("/bulk-delete", methods=["POST"])
@org_required("admin")
def bulk_delete_locations():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(Location, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} locations deleted", "count": count}), 200


@locations_bp.route("/bulk-active", methods=["POST"])
@org_required("admin")
def bulk_update_active():
    data = load_json(bulk_active_schema)
    count = bulk_update(Location, data["ids"], g.organization.id, {"is_active": data["is_active"]})
    return jsonify({"msg": f"{count} locations updated", "count": count}), 200
