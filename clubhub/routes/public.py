from flask import Blueprint, jsonify, request

from clubhub.errors import BadRequest
from clubhub.extensions import limiter
from clubhub.services import public_athletes as service
from clubhub.utils.query import MAX_LIMIT, arg_int, arg_list

public_bp = Blueprint("public", __name__)


@public_bp.route("/athletes", methods=["GET"])
@limiter.limit("60 per minute")
def list_public_athletes():
    sort_by = request.args.get("sort_by", "recent")
    if sort_by not in service.SORTS:
        raise BadRequest(f"sort_by must be one of: {', '.join(service.SORTS)}")

    items, total = service.list_athletes(
        limit=max(1, min(arg_int("limit") or 20, MAX_LIMIT)),
        offset=max(0, arg_int("offset") or 0),
        query=request.args.get("query"),
        sport=request.args.get("sport"),
        level=request.args.get("level"),
        country=request.args.get("country"),
        nationality=request.args.get("nationality"),
        position=request.args.get("position"),
        min_age=arg_int("min_age"),
        max_age=arg_int("max_age"),
        opportunity_types=arg_list("opportunity_type"),
        sort_by=sort_by,
    )
    return jsonify({"items": [athlete.public_dict() for athlete in items], "total": total}), 200


@public_bp.route("/athletes/<int:athlete_id>", methods=["GET"])
@limiter.limit("60 per minute")
def get_public_athlete(athlete_id):
    return jsonify(service.get_profile(athlete_id)), 200
