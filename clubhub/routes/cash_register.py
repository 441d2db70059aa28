from flask import Blueprint, g, jsonify

from clubhub.routes import load_json
from clubhub.schemas.cash_register import CashMovementSchema, CloseCashRegisterSchema, OpenCashRegisterSchema
from clubhub.services import cash_register as service
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_date, arg_list, list_params, page_response

cash_register_bp = Blueprint("cash_register", __name__)
open_schema = OpenCashRegisterSchema()
close_schema = CloseCashRegisterSchema()
movement_schema = CashMovementSchema()


@cash_register_bp.route("/current", methods=["GET"])
@org_required("staff")
def current():
    register = service.get_current(g.organization.id)
    return jsonify({"cash_register": register.to_dict() if register else None}), 200


@cash_register_bp.route("/history", methods=["GET"])
@org_required("staff")
def history():
    items, total = service.list_history(
        g.organization.id,
        list_params(default_sort="date"),
        statuses=arg_list("status"),
        date_from=arg_date("from"),
        date_to=arg_date("to"),
    )
    return jsonify(page_response(items, total)), 200


@cash_register_bp.route("/summary", methods=["GET"])
@org_required("staff")
def summary():
    return jsonify(service.daily_summary(g.organization.id, arg_date("date"))), 200


@cash_register_bp.route("/open", methods=["POST"])
@org_required("staff")
def open_register():
    register = service.open_register(g.organization.id, g.current_user, load_json(open_schema))
    return jsonify({"msg": "Cash register opened", "cash_register": register.to_dict()}), 201


@cash_register_bp.route("/movements", methods=["POST"])
@org_required("staff")
def add_movement():
    movement = service.add_manual_movement(g.organization.id, g.current_user, load_json(movement_schema))
    return jsonify({"msg": "Movement recorded", "movement": movement.to_dict()}), 201


@cash_register_bp.route("/<int:register_id>", methods=["GET"])
@org_required("staff")
def get_register(register_id):
    return jsonify(service.get_register(g.organization.id, register_id).to_dict()), 200


@cash_register_bp.route("/<int:register_id>/close", methods=["POST"])
@org_required("staff")
def close_register(register_id):
    register = service.close_register(g.organization.id, register_id, g.current_user, load_json(close_schema))
    return jsonify({"msg": "Cash register closed", "cash_register": register.to_dict()}), 200


@cash_register_bp.route("/<int:register_id>/movements", methods=["GET"])
@org_required("staff")
def list_movements(register_id):
    items, total = service.list_movements(
        g.organization.id,
        register_id,
        list_params(),
        types=arg_list("type"),
        reference_types=arg_list("reference_type"),
    )
    return jsonify(page_response(items, total)), 200
