# utils/errors.py
from flask import jsonify
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(ApiError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


class InternalError(ApiError):
    status_code = 500


def error_response(message, status_code):
    return jsonify({"success": False, "error": message}), status_code


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def api_error(e):
        if e.status_code >= 500:
            app.logger.error("%s: %s", type(e).__name__, e.message)
        return error_response(e.message, e.status_code)

    @app.errorhandler(PyMongoError)
    def storage_error(e):
        app.logger.exception("MongoDB error: %s", e)
        return error_response(str(e), 500)

    @app.errorhandler(HTTPException)
    def http_error(e):
        return error_response(e.description, e.code)

    @app.errorhandler(Exception)
    def unhandled_error(e):
        app.logger.exception("Unhandled exception: %s", e)
        return error_response("Internal server error", 500)
