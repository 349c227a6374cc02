from flask import jsonify


class ApiError(Exception):
    """Error carrying an API error code and the HTTP status it maps to."""

    code = "INTERNAL"
    status = 500

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = "Internal error."


class Unauthorized(ApiError):
    code = "UNAUTHORIZED"
    status = 401
    default_message = "Unauthorized"


class Forbidden(ApiError):
    code = "FORBIDDEN"
    status = 403
    default_message = "Forbidden"


class ValidationFailed(ApiError):
    code = "VALIDATION_ERROR"
    status = 400
    default_message = "Invalid request."


class NotFound(ApiError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Not found."


class Conflict(ApiError):
    code = "CONFLICT"
    status = 409
    default_message = "Conflict."


class InternalError(ApiError):
    pass


def api_ok(data, status=200, message=None):
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def api_error(code, message, status=500):
    return jsonify({"success": False, "error": {"code": code, "message": message}}), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        if err.status >= 500:
            app.logger.error("%s: %s", err.code, err.message)
        return api_error(err.code, err.message, err.status)
