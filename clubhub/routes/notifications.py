from flask import Blueprint, g, jsonify, request

from clubhub.models.constants import DELIVERY_STATUSES
from clubhub.notifications import jobs, service
from clubhub.routes import load_json
from clubhub.schemas.notifications import NotificationSendSchema
from clubhub.utils.decorators import org_required
from clubhub.utils.query import arg_list, list_params, page_response

notifications_bp = Blueprint("notifications", __name__)
send_schema = NotificationSendSchema()


@notifications_bp.route("/send", methods=["POST"])
@org_required("admin")
def send_notification():
    payload = load_json(send_schema)
    send_at = payload.pop("send_at", None)
    if not payload.get("priority"):
        payload.pop("priority", None)

    if send_at is not None:
        outcome = jobs.schedule_notification(payload, send_at, g.organization.id)
        if outcome["scheduled"]:
            return jsonify({"msg": "Notification scheduled", **outcome}), 202
        return jsonify(outcome["result"]), 200

    if isinstance(payload["to"], list):
        return jsonify(jobs.send_batch_notifications(payload, g.organization.id)), 200

    result = jobs.send_notification(payload, g.organization.id)
    code = 200 if result["success"] else 502
    if not result["success"] and result["error"]["code"] == "validation_failed":
        code = 400
    return jsonify(result), code


@notifications_bp.route("", methods=["GET"])
@org_required("admin")
def list_logs():
    statuses = [s for s in arg_list("status") or [] if s in DELIVERY_STATUSES]
    items, total = service.list_logs(
        g.organization.id,
        list_params(),
        statuses=statuses,
        channel=request.args.get("channel"),
        template=request.args.get("template"),
    )
    return jsonify(page_response(items, total)), 200


@notifications_bp.route("/channels", methods=["GET"])
@org_required()
def channels():
    return jsonify({"channels": service.available_channels()}), 200
