"""Error taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import uuid4

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base class for errors that map onto a JSON response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, payload: Optional[Dict] = None):
        self.message = message or self.default_message
        self.payload = dict(payload or {})
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, object]:
        body: Dict[str, object] = {"message": self.message}
        body.update(self.payload)
        return body


class BadRequestError(ApiError):
    status_code = 400
    default_message = "Bad request"


class ValidationError(ApiError):
    status_code = 400
    default_message = "Validation error"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message, {"errors": self.errors})


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Not authorized"


class AuthorizationError(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Conflict"


class RateLimitError(ApiError):
    status_code = 429
    default_message = "Too many attempts, please try again later"


class ServerError(ApiError):
    status_code = 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        if error.status_code >= 500:
            error_id = uuid4().hex
            app.logger.error("Server error %s: %s", error_id, error.message)
            return (
                jsonify({"message": "Internal server error", "error_id": error_id}),
                error.status_code,
            )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        error_id = uuid4().hex
        app.logger.exception("Unhandled error %s: %s", error_id, error)
        return (
            jsonify({"message": "Internal server error", "error_id": error_id}),
            500,
        )
