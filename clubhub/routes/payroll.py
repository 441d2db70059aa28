from flask import Blueprint, g, jsonify, request

from clubhub.errors import BadRequest
from clubhub.routes import load_json
from clubhub.schemas.base import BulkIdsSchema
from clubhub.schemas.finance import PayrollPaySchema, PayrollSchema
from clubhub.services import payroll as service
from clubhub.utils.decorators import org_required
from clubhub.utils.query import (
    arg_datetime, arg_ids, arg_int, arg_list, csv_response, list_params, page_response,
)

payroll_bp = Blueprint("payroll", __name__)
payroll_schema = PayrollSchema()
pay_schema = PayrollPaySchema()
bulk_ids_schema = BulkIdsSchema()


@payroll_bp.route("", methods=["GET"])
@org_required("admin")
def list_payrolls():
    items, total = service.list_payrolls(
        g.organization.id,
        list_params(default_sort="period_start"),
        query=request.args.get("query"),
        statuses=arg_list("status"),
        staff_types=arg_list("staff_type"),
        period_types=arg_list("period_type"),
        coach_id=arg_int("coach_id"),
        user_id=arg_int("user_id"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
        min_amount=arg_int("min_amount"),
        max_amount=arg_int("max_amount"),
    )
    return jsonify(page_response(items, total)), 200


@payroll_bp.route("/summary", methods=["GET"])
@org_required("admin")
def payroll_summary():
    return jsonify(service.summary(g.organization.id)), 200


@payroll_bp.route("/staff-options", methods=["GET"])
@org_required("admin")
def staff_options():
    return jsonify(service.list_staff_options(g.organization.id)), 200


@payroll_bp.route("/coach-sessions", methods=["GET"])
@org_required("admin")
def coach_sessions():
    coach_id = arg_int("coach_id")
    period_start, period_end = arg_datetime("from"), arg_datetime("to")
    if not coach_id or not period_start or not period_end:
        raise BadRequest("'coach_id', 'from' and 'to' are required")
    return jsonify(service.coach_sessions(g.organization.id, coach_id, period_start, period_end)), 200


@payroll_bp.route("/export", methods=["GET"])
@org_required("admin")
def export_payrolls():
    headers, rows = service.export_rows(g.organization.id, arg_ids())
    return csv_response("payroll", headers, rows)


@payroll_bp.route("/<int:payroll_id>", methods=["GET"])
@org_required("admin")
def get_payroll(payroll_id):
    return jsonify(service.get_payroll(g.organization.id, payroll_id).to_dict()), 200


@payroll_bp.route("", methods=["POST"])
@org_required("admin")
def create_payroll():
    payroll = service.create_payroll(g.organization.id, g.current_user, load_json(payroll_schema))
    return jsonify({"msg": "Payroll created", "payroll": payroll.to_dict()}), 201


@payroll_bp.route("/<int:payroll_id>", methods=["PATCH"])
@org_required("admin")
def update_payroll(payroll_id):
    payroll = service.update_payroll(g.organization.id, payroll_id, load_json(payroll_schema, partial=True))
    return jsonify({"msg": "Payroll updated", "payroll": payroll.to_dict()}), 200


@payroll_bp.route("/<int:payroll_id>/approve", methods=["POST"])
@org_required("admin")
def approve_payroll(payroll_id):
    payroll = service.approve_payroll(g.organization.id, payroll_id, g.current_user)
    return jsonify({"msg": "Payroll approved", "payroll": payroll.to_dict()}), 200


@payroll_bp.route("/<int:payroll_id>/pay", methods=["POST"])
@org_required("admin")
def mark_as_paid(payroll_id):
    payroll = service.mark_as_paid(g.organization.id, payroll_id, g.current_user, load_json(pay_schema))
    return jsonify({"msg": "Payroll marked as paid", "payroll": payroll.to_dict()}), 200


@payroll_bp.route("/<int:payroll_id>/cancel", methods=["POST"])
@org_required("admin")
def cancel_payroll(payroll_id):
    payroll = service.cancel_payroll(g.organization.id, payroll_id)
    return jsonify({"msg": "Payroll cancelled", "payroll": payroll.to_dict()}), 200


@payroll_bp.route("/<int:payroll_id>", methods=["DELETE"])
@org_required("admin")
def delete_payroll(payroll_id):
    service.delete_payroll(g.organization.id, payroll_id)
    return jsonify({"msg": "Payroll deleted"}), 200


@payroll_bp.route("/bulk-delete", methods=["POST"])
@org_required("admin")
def bulk_delete_payrolls():
    data = load_json(bulk_ids_schema)
    count = service.bulk_delete(g.organization.id, data["ids"])
    return jsonify({"msg": f"{count} payrolls deleted", "count": count}), 200


@payroll_bp.route("/bulk-approve", methods=["POST"])
@org_required("admin")
def bulk_approve_payrolls():
    data = load_json(bulk_ids_schema)
    count = service.bulk_approve(g.organization.id, data["ids"], g.current_user)
    return jsonify({"msg": f"{count} payrolls approved", "count": count}), 200
