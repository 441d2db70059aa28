from flask import Blueprint, g, jsonify

from clubhub.permissions import is_org_admin
from clubhub.routes import load_json
from clubhub.schemas.organizations import MemberAddSchema, MemberRoleSchema, OrganizationSchema
from clubhub.services import organizations as service
from clubhub.utils.decorators import org_required, user_required

# /api/organizations: organizations of the calling user
organizations_bp = Blueprint("organizations", __name__)
# /api/org: the active organization (X-Organization-Id)
org_bp = Blueprint("org", __name__)

organization_schema = OrganizationSchema()
member_add_schema = MemberAddSchema()
member_role_schema = MemberRoleSchema()


@organizations_bp.route("", methods=["POST"])
@user_required
def create_organization():
    data = load_json(organization_schema)
    organization = service.create_organization(g.current_user, data)
    return jsonify({"msg": "Organization created", "organization": organization.to_dict()}), 201


@organizations_bp.route("", methods=["GET"])
@user_required
def list_organizations():
    return jsonify({"organizations": service.list_user_organizations(g.current_user)}), 200


@org_bp.route("", methods=["GET"])
@org_required()
def get_organization():
    return jsonify(dict(g.organization.to_dict(), role=g.member.role, is_admin=is_org_admin(g.member))), 200


@org_bp.route("", methods=["PATCH"])
@org_required("admin")
def update_organization():
    data = load_json(organization_schema, partial=True)
    organization = service.update_organization(g.organization, data)
    return jsonify({"msg": "Organization updated", "organization": organization.to_dict()}), 200


@org_bp.route("/members", methods=["GET"])
@org_required()
def list_members():
    members = service.list_members(g.organization.id)
    return jsonify({"items": [m.to_dict() for m in members], "total": len(members)}), 200


@org_bp.route("/members", methods=["POST"])
@org_required("manage_users")
def add_member():
    data = load_json(member_add_schema)
    member = service.add_member(g.organization.id, data["email"], data["role"])
    return jsonify({"msg": "Member added", "member": member.to_dict()}), 201


@org_bp.route("/members/<int:member_id>", methods=["PATCH"])
@org_required("manage_users")
def change_member_role(member_id):
    data = load_json(member_role_schema)
    member = service.change_member_role(g.organization.id, member_id, data["role"], g.member)
    return jsonify({"msg": "Role updated", "member": member.to_dict()}), 200


@org_bp.route("/members/<int:member_id>", methods=["DELETE"])
@org_required("manage_users")
def remove_member(member_id):
    service.remove_member(g.organization.id, member_id)
    return jsonify({"msg": "Member removed"}), 200
