from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException
from content_engine.domain.invariants.exceptions import ContentEngineError
from content_engine.extensions import jwt


def error_response(error_name, reason, message, status_code):
    response = jsonify({
        "error": error_name,
        "reason": reason,
        "message": message,
    })
    response.status_code = status_code
    return response


def register_error_handlers(app):
    @app.errorhandler(ContentEngineError)
    def handle_content_error(error):
        if error.status_code >= 500:
            current_app.logger.error("Unhandled content error: %s", error)
        return error_response(
            type(error).__name__, error.reason, str(error), error.status_code
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(
            type(error).__name__,
            (error.name or "http_error").lower().replace(" ", "_"),
            error.description,
            error.code,
        )


def register_jwt_handlers():
    # Auth failures share the error shape of every other rejection.

    @jwt.unauthorized_loader
    def missing_token(message):
        return error_response("AuthorizationError", "missing_token", message, 401)

    @jwt.invalid_token_loader
    def invalid_token(message):
        return error_response("AuthorizationError", "invalid_token", message, 401)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("AuthorizationError", "token_expired", "Token has expired", 401)
