from flask import Blueprint, g, jsonify
from flask_jwt_extended import create_access_token, set_access_cookies, unset_jwt_cookies

from clubhub.extensions import limiter
from clubhub.routes import load_json
from clubhub.schemas.organizations import LoginSchema, RegisterSchema
from clubhub.services import organizations as service
from clubhub.utils.decorators import user_required

auth_bp = Blueprint("auth", __name__)
register_schema = RegisterSchema()
login_schema = LoginSchema()


def _token_response(user, status_code):
    access_token = create_access_token(identity=str(user.id))
    response = jsonify({"access_token": access_token, "user": user.to_dict()})
    set_access_cookies(response, access_token)
    return response, status_code


@auth_bp.route("/register", methods=["POST"])
@limiter.limit("5 per hour")
def register():
    data = load_json(register_schema)
    user = service.register_user(data["name"], data["email"], data["password"], data.get("phone"))
    return _token_response(user, 201)


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    data = load_json(login_schema)
    user = service.authenticate(data["email"], data["password"])
    return _token_response(user, 200)


@auth_bp.route("/me", methods=["GET"])
@user_required
def me():
    user = g.current_user
    return jsonify({"user": user.to_dict(), "organizations": service.list_user_organizations(user)}), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"msg": "Logout successful"})
    unset_jwt_cookies(response)
    return response, 200
