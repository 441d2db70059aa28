from flask import Blueprint, g, jsonify, request

from clubhub.models import TrainingPayment
from clubhub.models.constants import PAYMENT_STATUSES
from clubhub.routes import load_json
from clubhub.schemas.base import BulkIdsSchema, bulk_status_schema
from clubhub.schemas.finance import RecordPaymentSchema, TrainingPaymentSchema
from clubhub.services import payments as service
from clubhub.services.common import bulk_delete, bulk_update
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_datetime, arg_int, arg_list, list_params, page_response

payments_bp = Blueprint("payments", __name__)
payment_schema = TrainingPaymentSchema()
record_schema = RecordPaymentSchema()
bulk_ids_schema = BulkIdsSchema()
bulk_status = bulk_status_schema(PAYMENT_STATUSES)


@payments_bp.route("", methods=["GET"])
@org_required("staff")
def list_payments():
    items, total = service.list_payments(
        g.organization.id,
        list_params(),
        query=request.args.get("query"),
        statuses=arg_list("status"),
        athlete_id=arg_int("athlete_id"),
        payment_methods=arg_list("payment_method"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
    )
    return jsonify(page_response(items, total)), 200


@payments_bp.route("/summary", methods=["GET"])
@org_required("staff")
def payments_summary():
    return jsonify(service.summary(g.organization.id)), 200


@payments_bp.route("/<int:payment_id>", methods=["GET"])
@org_required("staff")
def get_payment(payment_id):
    return jsonify(service.get_payment(g.organization.id, payment_id).to_dict()), 200


@payments_bp.route("", methods=["POST"])
@org_required("staff")
def create_payment():
    payment = service.create_payment(g.organization.id, g.current_user, load_json(payment_schema))
    return jsonify({"msg": "Payment created", "payment": payment.to_dict()}), 201


@payments_bp.route("/<int:payment_id>", methods=["PATCH"])
@org_required("staff")
def update_payment(payment_id):
    data = load_json(payment_schema, partial=True)
    payment = service.update_payment(g.organization.id, payment_id, data)
    return jsonify({"msg": "Payment updated", "payment": payment.to_dict()}), 200


@payments_bp.route("/<int:payment_id>/record", methods=["POST"])
@org_required("staff")
def record_payment(payment_id):
    data = load_json(record_schema)
    payment = service.record_payment(g.organization.id, payment_id, g.current_user, data)
    return jsonify({"msg": "Payment recorded", "payment": payment.to_dict()}), 200


@payments_bp.route("/<int:payment_id>", methods=["DELETE"])
@org_required("admin")
def delete_payment(payment_id):
    service.delete_payment(g.organization.id, payment_id)
    return jsonify({"msg": "Payment deleted"}), 200


@payments_bp.route("/bulk-delete", methods=["POST"])
@org_required("admin")
def bulk_delete_payments():
    data = load_json(bulk_ids_schema)
    count = bulk_delete(TrainingPayment, data["ids"], g.organization.id)
    return jsonify({"msg": f"{count} payments deleted", "count": count}), 200


@payments_bp.route("/bulk-status", methods=["POST"])
@org_required("staff")
def bulk_update_status():
    data = load_json(bulk_status)
    count = bulk_update(TrainingPayment, data["ids"], g.organization.id, {"status": data["status"]})
    return jsonify({"msg": f"{count} payments updated", "count": count}), 200
