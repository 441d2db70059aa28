"""Vendors and the per-event planning sheets: assignments, inventory, budget, risks."""

from flask import g, jsonify, request

from clubhub.routes import load_json
from clubhub.schemas.events import (
    BudgetLineSchema,
    InventoryItemSchema,
    RiskSchema,
    VendorAssignmentSchema,
    VendorSchema,
)
from clubhub.services import event_organization as service
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_bool, arg_list

from . import events_bp

vendor_schema = VendorSchema()
assignment_schema = VendorAssignmentSchema()
inventory_schema = InventoryItemSchema()
budget_line_schema = BudgetLineSchema()
risk_schema = RiskSchema()


def _dicts(items):
    return [item.to_dict() for item in items]


# Vendors

@events_bp.route("/vendors", methods=["GET"])
@org_required()
def list_vendors():
    vendors = service.list_vendors(
        g.organization.id,
        query=request.args.get("query"),
        is_active=arg_bool("is_active"),
        category=request.args.get("category"),
    )
    return jsonify(_dicts(vendors)), 200


@events_bp.route("/vendors/<int:vendor_id>", methods=["GET"])
@org_required()
def get_vendor(vendor_id):
    return jsonify(service.get_vendor(g.organization.id, vendor_id).to_dict()), 200


@events_bp.route("/vendors", methods=["POST"])
@org_required("manage_events")
def create_vendor():
    vendor = service.create_vendor(g.organization.id, g.current_user, load_json(vendor_schema))
    return jsonify({"msg": "Vendor created", "vendor": vendor.to_dict()}), 201


@events_bp.route("/vendors/<int:vendor_id>", methods=["PATCH"])
@org_required("manage_events")
def update_vendor(vendor_id):
    vendor = service.update_vendor(g.organization.id, vendor_id, load_json(vendor_schema, partial=True))
    return jsonify({"msg": "Vendor updated", "vendor": vendor.to_dict()}), 200


@events_bp.route("/vendors/<int:vendor_id>", methods=["DELETE"])
@org_required("manage_events")
def delete_vendor(vendor_id):
    service.delete_vendor(g.organization.id, vendor_id)
    return jsonify({"msg": "Vendor deleted"}), 200


# Vendor assignments

@events_bp.route("/<int:event_id>/vendors", methods=["GET"])
@org_required()
def list_assignments(event_id):
    return jsonify(_dicts(service.list_assignments(g.organization.id, event_id))), 200


@events_bp.route("/<int:event_id>/vendors", methods=["POST"])
@org_required("manage_events")
def create_assignment(event_id):
    assignment = service.create_assignment(g.organization.id, event_id, load_json(assignment_schema))
    return jsonify({"msg": "Vendor assigned", "assignment": assignment.to_dict()}), 201


@events_bp.route("/<int:event_id>/vendors/<int:assignment_id>", methods=["PATCH"])
@org_required("manage_events")
def update_assignment(event_id, assignment_id):
    data = load_json(assignment_schema, partial=True)
    assignment = service.update_assignment(g.organization.id, event_id, assignment_id, data)
    return jsonify({"msg": "Vendor assignment updated", "assignment": assignment.to_dict()}), 200


@events_bp.route("/<int:event_id>/vendors/<int:assignment_id>", methods=["DELETE"])
@org_required("manage_events")
def delete_assignment(event_id, assignment_id):
    service.delete_assignment(g.organization.id, event_id, assignment_id)
    return jsonify({"msg": "Vendor assignment removed"}), 200


# Inventory

@events_bp.route("/<int:event_id>/inventory", methods=["GET"])
@org_required()
def list_inventory(event_id):
    items = service.list_inventory(
        g.organization.id,
        event_id,
        category=request.args.get("category"),
        statuses=arg_list("status"),
        zone=request.args.get("zone"),
    )
    return jsonify(_dicts(items)), 200


@events_bp.route("/<int:event_id>/inventory", methods=["POST"])
@org_required("manage_events")
def create_inventory_item(event_id):
    item = service.create_inventory_item(g.organization.id, event_id, g.current_user, load_json(inventory_schema))
    return jsonify({"msg": "Inventory item created", "item": item.to_dict()}), 201


@events_bp.route("/<int:event_id>/inventory/<int:item_id>", methods=["PATCH"])
@org_required("manage_events")
def update_inventory_item(event_id, item_id):
    data = load_json(inventory_schema, partial=True)
    item = service.update_inventory_item(g.organization.id, event_id, item_id, data)
    return jsonify({"msg": "Inventory item updated", "item": item.to_dict()}), 200


@events_bp.route("/<int:event_id>/inventory/<int:item_id>", methods=["DELETE"])
@org_required("manage_events")
def delete_inventory_item(event_id, item_id):
    service.delete_inventory_item(g.organization.id, event_id, item_id)
    return jsonify({"msg": "Inventory item deleted"}), 200


# Budget

@events_bp.route("/<int:event_id>/budget", methods=["GET"])
@org_required()
def list_budget_lines(event_id):
    return jsonify(_dicts(service.list_budget_lines(g.organization.id, event_id))), 200


@events_bp.route("/<int:event_id>/budget", methods=["POST"])
@org_required("manage_events")
def create_budget_line(event_id):
    line = service.create_budget_line(g.organization.id, event_id, g.current_user, load_json(budget_line_schema))
    return jsonify({"msg": "Budget line created", "line": line.to_dict()}), 201


@events_bp.route("/<int:event_id>/budget/<int:line_id>", methods=["PATCH"])
@org_required("manage_events")
def update_budget_line(event_id, line_id):
    data = load_json(budget_line_schema, partial=True)
    line = service.update_budget_line(g.organization.id, event_id, line_id, g.current_user, data)
    return jsonify({"msg": "Budget line updated", "line": line.to_dict()}), 200


@events_bp.route("/<int:event_id>/budget/<int:line_id>", methods=["DELETE"])
@org_required("manage_events")
def delete_budget_line(event_id, line_id):
    service.delete_budget_line(g.organization.id, event_id, line_id)
    return jsonify({"msg": "Budget line deleted"}), 200


# Risks

@events_bp.route("/<int:event_id>/risks", methods=["GET"])
@org_required()
def list_risks(event_id):
    risks = service.list_risks(g.organization.id, event_id, statuses=arg_list("status"))
    return jsonify(_dicts(risks)), 200


@events_bp.route("/<int:event_id>/risks", methods=["POST"])
@org_required("manage_events")
def create_risk(event_id):
    risk = service.create_risk(g.organization.id, event_id, g.current_user, load_json(risk_schema))
    return jsonify({"msg": "Risk created", "risk": risk.to_dict()}), 201


@events_bp.route("/<int:event_id>/risks/<int:risk_id>", methods=["PATCH"])
@org_required("manage_events")
def update_risk(event_id, risk_id):
    data = load_json(risk_schema, partial=True)
    risk = service.update_risk(g.organization.id, event_id, risk_id, g.current_user, data)
    return jsonify({"msg": "Risk updated", "risk": risk.to_dict()}), 200


@events_bp.route("/<int:event_id>/risks/<int:risk_id>", methods=["DELETE"])
@org_required("manage_events")
def delete_risk(event_id, risk_id):
    service.delete_risk(g.organization.id, event_id, risk_id)
    return jsonify({"msg": "Risk deleted"}), 200


@events_bp.route("/<int:event_id>/risks/<int:risk_id>/logs", methods=["GET"])
@org_required()
def list_risk_logs(event_id, risk_id):
    return jsonify(_dicts(service.list_risk_logs(g.organization.id, event_id, risk_id))), 200


@events_bp.route("/<int:event_id>/projection", methods=["GET"])
@org_required("manage_events")
def get_projection(event_id):
    return jsonify(service.get_projection(g.organization.id, event_id)), 200
