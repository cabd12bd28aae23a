"""
Error handlers – every failure leaves the API as the standard error envelope.
"""

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from petcheck.utils.api import AppError, ERROR_CODES, error_response

logger = logging.getLogger("petcheck.errors")

_HTTP_CODES = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "INSUFFICIENT_PERMISSIONS",
    404: "NOT_FOUND",
    429: "RATE_LIMITED",
}


def _respond(error: AppError):
    return jsonify(error_response(error)), error.status_code


def register_error_handlers(app: Flask) -> None:

    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc.message)
        else:
            logger.info("Request rejected (%s): %s", exc.code, exc.message)
        return _respond(exc)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        name = _HTTP_CODES.get(exc.code, "INTERNAL_ERROR" if (exc.code or 500) >= 500 else "VALIDATION_ERROR")
        message = exc.description if exc.code != 429 else "Too many requests. Please try again later."
        return _respond(AppError(ERROR_CODES[name], message, exc.code or 500))

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.error("Unhandled error: %s", exc, exc_info=True)
        return _respond(AppError(ERROR_CODES["INTERNAL_ERROR"], "An unexpected error occurred.", 500))
