from flask import Blueprint, g, jsonify, request

from clubhub.errors import BadRequest, NotFound
from clubhub.routes import load_json
from clubhub.schemas.athletes import (
    ATHLETE_SECTION_SCHEMAS, COACH_SECTION_SCHEMAS, AthleteUpdateSchema, CoachUpdateSchema,
)
from clubhub.services import athletes as athlete_service
from clubhub.services import coaches as coach_service
from clubhub.services import groups as group_service
from clubhub.services import payments as payment_service
from clubhub.services import sessions as session_service
from clubhub.utils.decorators import ORGANIZATION_HEADER, org_required, user_required
from clubhub.utils.query import arg_datetime, arg_list, list_params, page_response

me_bp = Blueprint("me", __name__)
athlete_update_schema = AthleteUpdateSchema()
coach_update_schema = CoachUpdateSchema()

PROFILES = {
    "athlete": (athlete_service, ATHLETE_SECTION_SCHEMAS),
    "coach": (coach_service, COACH_SECTION_SCHEMAS),
}


def _my_profile(kind):
    if kind == "athlete":
        return athlete_service.get_my_athlete(g.current_user)
    return coach_service.get_my_coach(g.current_user, request.headers.get(ORGANIZATION_HEADER, type=int))


def _profile_service(kind, section):
    if kind not in PROFILES:
        raise NotFound("Unknown profile")
    service, schemas = PROFILES[kind]
    if section not in schemas:
        raise NotFound("Unknown profile section")
    return service, schemas[section]()


@me_bp.route("/athlete", methods=["GET"])
@user_required
def get_my_athlete():
    athlete = _my_profile("athlete")
    return jsonify(athlete_service.athlete_detail(athlete)), 200


@me_bp.route("/athlete", methods=["PATCH"])
@user_required
def update_my_athlete():
    data = load_json(athlete_update_schema, partial=True)
    # Status is managed by the organization
    data.pop("status", None)
    athlete = athlete_service.update_profile(_my_profile("athlete"), data)
    return jsonify({"msg": "Profile updated", "athlete": athlete.to_dict()}), 200


@me_bp.route("/coach", methods=["GET"])
@user_required
def get_my_coach():
    coach = _my_profile("coach")
    return jsonify(coach_service.coach_detail(coach)), 200


@me_bp.route("/coach", methods=["PATCH"])
@user_required
def update_my_coach():
    data = load_json(coach_update_schema, partial=True)
    data.pop("status", None)
    coach = coach_service.update_coach(_my_profile("coach"), data)
    return jsonify({"msg": "Profile updated", "coach": coach.to_dict()}), 200


@me_bp.route("/<kind>/<section>", methods=["GET"])
@user_required
def list_my_section(kind, section):
    service, _ = _profile_service(kind, section)
    items = service.list_section(_my_profile(kind), section)
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@me_bp.route("/<kind>/<section>", methods=["POST"])
@user_required
def create_my_section_item(kind, section):
    service, schema = _profile_service(kind, section)
    item = service.create_section_item(_my_profile(kind), section, load_json(schema))
    return jsonify(item.to_dict()), 201


@me_bp.route("/<kind>/<section>/<int:item_id>", methods=["PATCH"])
@user_required
def update_my_section_item(kind, section, item_id):
    service, schema = _profile_service(kind, section)
    item = service.update_section_item(_my_profile(kind), section, item_id, load_json(schema, partial=True))
    return jsonify(item.to_dict()), 200


@me_bp.route("/<kind>/<section>/<int:item_id>", methods=["DELETE"])
@user_required
def delete_my_section_item(kind, section, item_id):
    service, _ = _profile_service(kind, section)
    service.delete_section_item(_my_profile(kind), section, item_id)
    return jsonify({"msg": "Entry deleted"}), 200


@me_bp.route("/sessions", methods=["GET"])
@org_required()
def my_sessions():
    role = request.args.get("as", "athlete")
    if role not in ("athlete", "coach"):
        raise BadRequest("'as' must be 'athlete' or 'coach'")

    lister = (
        session_service.list_my_sessions_as_coach if role == "coach"
        else session_service.list_my_sessions_as_athlete
    )
    items, total, profile = lister(
        g.organization.id,
        g.current_user,
        list_params(default_sort="start_time", default_order="asc"),
        statuses=arg_list("status"),
        date_from=arg_datetime("from"),
        date_to=arg_datetime("to"),
    )
    response = page_response(items, total)
    response[role] = profile.to_dict() if profile else None
    return jsonify(response), 200


@me_bp.route("/payments", methods=["GET"])
@org_required()
def my_payments():
    payments, athlete, totals = payment_service.list_my_payments(g.organization.id, g.current_user)
    return jsonify({
        "items": [p.to_dict() for p in payments],
        "total": len(payments),
        "athlete": athlete.to_dict() if athlete else None,
        "totals": totals,
    }), 200


@me_bp.route("/groups", methods=["GET"])
@org_required()
def my_groups():
    groups, athlete = group_service.list_my_groups(g.organization.id, g.current_user)
    return jsonify({
        "items": [group.to_dict() for group in groups],
        "total": len(groups),
        "athlete": athlete.to_dict() if athlete else None,
    }), 200
