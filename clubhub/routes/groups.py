from flask import Blueprint, g, jsonify, request

from clubhub.models import AthleteGroup
from clubhub.routes import load_json
from clubhub.schemas.base import BulkActiveSchema, BulkIdsSchema
from clubhub.schemas.organizations import AthleteGroupSchema, GroupMembersSchema
from clubhub.services import groups as service
from clubhub.services.common import bulk_delete, bulk_update
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_bool, arg_list, list_params, page_response

groups_bp = Blueprint("groups", __name__)
group_schema = AthleteGroupSchema()
members_schema = GroupMembersSchema()
bulk_ids_schema = BulkIdsSchema()
bulk_active_schema = BulkActiveSchema()


@groups_bp.route("", methods=["GET"])
@org_required()
def list_groups():
    items, total = service.list_groups(
        g.organization.id,
        list_params(default_sort="name", default_order="asc"),
        query=request.args.get("query"),
        is_active=arg_bool("is_active"),
        sports=arg_list("sport"),
    )
    return jsonify(page_response(items, total)), 200


@groups_bp.route("/active", methods=["GET"])
@org_required()
def list_active_groups():
    items = service.list_active(g.organization.id)
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@groups_bp.route("/<int:group_id>", methods=["GET"])
@org_required()
def get_group(group_id):
    group = service.get_group(g.organization.id, group_id)
    return jsonify(group.to_dict(include_members=True)), 200


@groups_bp.route("", methods=["POST"])
@org_required("manage_athletes")
def create_group():
    group = service.create_group(g.organization.id, load_json(group_schema))
    return jsonify({"msg": "Group created", "group": group.to_dict(include_members=True)}), 201


@groups_bp.route("/<int:group_id>", methods=["PATCH"])
@org_required("manage_athletes")
def update_group(group_id):
    group = service.update_group(g.organization.id, group_id, load_json(group_schema, partial=True))
    return jsonify({"msg": "Group updated", "group": group.to_dict()}), 200


@groups_bp.route("/<int:group_id>", methods=["DELETE"])
@org_required("manage_athletes")
def delete_group(group_id):
    service.delete_group(g.organization.id, group_id)
    return jsonify({"msg": "Group deleted"}), 200


@groups_bp.route("/<int:group_id>/members", methods=["POST"])
@org_required("manage_athletes")
def add_members(group_id):
    data = load_json(members_schema)
    added = service.add_members(g.organization.id, group_id, data["athlete_ids"])
    return jsonify({"msg": f"{added} athletes added", "count": added}), 200


@groups_bp.route("/<int:group_id>/members", methods=["DELETE"])
@org_required("manage_athletes")
def remove_members(group_id):
    data = load_json(members_schema)
    removed = service.remove_members(g.organization.id, group_id, data["athlete_ids"])
    return jsonify({"msg": f"{removed} athletes removed", "count": removed}), 200


@groups_bp.route("/<int:group_id>/members", methods=["PUT"])
@org_required("manage_athletes")
def set_members(group_id):
    data = load_json(members_schema)
    count = service.set_members(g.organization.id, group_id, data["athlete_ids"])
    return jsonify({"msg": "Members updated", "count": count}), 200


@groups_bp.route("/bulk-delete", methods=["POST"])
@org_required("manage_athletes")
def bulk_delete_groups():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(AthleteGroup, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} groups deleted", "count": count}), 200


@groups_bp.route("/bulk-active", methods=["POST"])
@org_required("manage_athletes")
def bulk_update_active():
    data = load_json(bulk_active_schema)
    count = bulk_update(AthleteGroup, data["ids"], g.organization.id, {"is_active": data["is_active"]})
    return jsonify({"msg": f"{count} groups updated", "count": count}), 200
