from flask import jsonify
from werkzeug.exceptions import HTTPException

from . import db


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_response(self):
        return jsonify({"success": False, "message": self.message}), self.status_code


class BadRequest(ApiError):
    status_code = 400
    message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    message = "Unauthorized"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Conflict(ApiError):
    status_code = 409
    message = "Conflict"


# turns every error raised by a blueprint into the JSON envelope the clients expect
def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        db.session.rollback()
        return err.to_response()

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({"success": False, "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", err)
        return jsonify({"success": False, "message": "Internal server error"}), 500
