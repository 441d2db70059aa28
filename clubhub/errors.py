import logging

from flask import jsonify
from marshmallow import ValidationError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message, status_code=None, code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_dict(self):
        return {"msg": self.message, "code": self.code}


class BadRequest(ApiError):
    status_code = 400
    code = "BAD_REQUEST"


class Unauthorized(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(ApiError):
    status_code = 403
    code = "FORBIDDEN"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(ApiError):
    status_code = 409
    code = "CONFLICT"


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error("API error: %s", error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({"msg": "Validation error", "errors": error.messages}), 400

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"msg": "Resource not found", "code": "NOT_FOUND"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"msg": "Method not allowed"}), 405

    @app.errorhandler(429)
    def handle_rate_limited(error):
        return jsonify({"msg": "Too many requests"}), 429

    @app.errorhandler(500)
    def handle_internal_error(error):
        logger.exception("Unhandled server error")
        return jsonify({"msg": "Internal server error"}), 500
