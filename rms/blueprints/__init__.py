"""
RMS - Residency Management System
Blueprint registry and helpers shared by the API blueprints.
"""

import logging

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from rms.core.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from rms.utils.errors import E, api_error, validation_code

logger = logging.getLogger(__name__)


def get_store():
    """Build an ``AssessmentStore`` for this request from the app's factory."""
    return current_app.extensions["rms_store_factory"]()


def parse_limit():
    """Read ``?limit=`` capped at ASSESSMENT_LIST_MAX_LIMIT.

    Returns:
        (limit, None) on success, (None, error_response) on a bad value.
    """
    default = current_app.config["ASSESSMENT_LIST_DEFAULT_LIMIT"]
    max_limit = current_app.config["ASSESSMENT_LIST_MAX_LIMIT"]
    raw = request.args.get("limit")
    if raw is None:
        return default, None
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return None, api_error(E.VALIDATION_INVALID, "limit must be an integer",
                               details={"limit": "must be an integer"})
    if limit < 1:
        return None, api_error(E.VALIDATION_INVALID, "limit must be >= 1",
                               details={"limit": "must be >= 1"})
    return min(limit, max_limit), None


def register_error_handlers(bp):
    """Map the service exception taxonomy onto HTTP responses for one blueprint."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(validation_code(error.details), str(error), details=error.details)

    @bp.errorhandler(StoreUnavailableError)
    def _handle_unavailable(error: StoreUnavailableError):
        return api_error(E.STORE_UNAVAILABLE, str(error))

    @bp.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        return jsonify({"error": error.description}), error.code

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
