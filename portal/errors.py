import logging
from typing import List, Optional

from flask import Flask, request
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from .responses import api_response

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = 'Internal server error. Please try again later.'


class ApiError(Exception):
    """An expected failure rendered as a JSON envelope with a fixed status code."""

    status_code = 500
    default_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailed(ApiError):
    status_code = 400
    default_message = 'Validation failed. Please check your input.'


class Unauthorized(ApiError):
    status_code = 401
    default_message = 'Not authorized. Please login.'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Not found.'


class Conflict(ApiError):
    status_code = 409
    default_message = 'Resource already exists.'


class RateLimited(ApiError):
    status_code = 429
    default_message = 'Too many requests. Please try again after 15 minutes.'


class DependencyUnavailable(ApiError):
    status_code = 500
    default_message = 'Service temporarily unavailable. Please try again later.'


def register_error_handlers(app: Flask):
    """Render every failure as a {success: false, message} envelope."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        return api_response(False, message=error.message, errors=error.errors, status=error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        if error.code == 404:
            message = f"Route {request.method} {request.path} not found"
        else:
            message = error.description
        return api_response(False, message=message, status=error.code)

    @app.errorhandler(OperationalError)
    def handle_database_unavailable(error: OperationalError):
        logger.error(f"Database unavailable during {request.method} {request.path}: {error}")
        return handle_api_error(DependencyUnavailable())

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception(f"Unhandled error during {request.method} {request.path}")
        return api_response(False, message=INTERNAL_ERROR_MESSAGE, status=500)
