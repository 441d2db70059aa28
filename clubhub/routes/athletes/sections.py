from flask import g, jsonify

from clubhub.errors import NotFound
from clubhub.routes import load_json
from clubhub.schemas.athletes import ATHLETE_SECTION_SCHEMAS
from clubhub.services import athletes as service
from clubhub.utils.decorators import org_required

from . import athletes_bp


def section_schema(section):
    if section not in ATHLETE_SECTION_SCHEMAS:
        raise NotFound("Unknown profile section")
    return ATHLETE_SECTION_SCHEMAS[section]()


@athletes_bp.route("/<int:athlete_id>/<section>", methods=["GET"])
@org_required()
def list_section(athlete_id, section):
    athlete = service.get_athlete(g.organization.id, athlete_id)
    items = service.list_section(athlete, section)
    return jsonify({"items": [item.to_dict() for item in items], "total": len(items)}), 200


@athletes_bp.route("/<int:athlete_id>/<section>", methods=["POST"])
@org_required("manage_athletes")
def create_section_item(athlete_id, section):
    athlete = service.get_athlete(g.organization.id, athlete_id)
    data = load_json(section_schema(section))
    item = service.create_section_item(athlete, section, data)
    return jsonify(item.to_dict()), 201


@athletes_bp.route("/<int:athlete_id>/<section>/<int:item_id>", methods=["PATCH"])
@org_required("manage_athletes")
def update_section_item(athlete_id, section, item_id):
    athlete = service.get_athlete(g.organization.id, athlete_id)
    data = load_json(section_schema(section), partial=True)
    item = service.update_section_item(athlete, section, item_id, data)
    return jsonify(item.to_dict()), 200


@athletes_bp.route("/<int:athlete_id>/<section>/<int:item_id>", methods=["DELETE"])
@org_required("manage_athletes")
def delete_section_item(athlete_id, section, item_id):
    athlete = service.get_athlete(g.organization.id, athlete_id)
    service.delete_section_item(athlete, section, item_id)
    return jsonify({"msg": "Entry deleted"}), 200
