"""API error hierarchy and the Flask handlers that render it as JSON."""

from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, errors=None, detail=None):
        self.message = message or self.default_message
        self.errors = errors
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self, include_detail=False):
        payload = {'success': False, 'message': self.message}
        if self.errors is not None:
            payload['errors'] = self.errors
        if include_detail and self.detail:
            payload['error'] = self.detail
        return payload


class ValidationError(ApiError):
    """Malformed or missing input; ``errors`` lists ``{field, message}`` items."""
    status_code = 400
    default_message = 'Validation failed'

    @classmethod
    def for_field(cls, field, message):
        return cls(message, errors=[{'field': field, 'message': message}])


class AuthError(ApiError):
    status_code = 401
    default_message = 'Invalid or expired token'


class ConflictError(ApiError):
    status_code = 409
    default_message = 'Conflict'


class NotFoundError(ApiError):
    status_code = 404
    default_message = 'Not found'


class InternalError(ApiError):
    status_code = 500


def _is_production():
    return current_app.config.get('APP_ENV') == 'production'


def handle_api_error(exc):
    if exc.status_code >= 500:
        current_app.logger.error(f"[error] {request.method} {request.path}: {exc.detail or exc.message}")
    return jsonify(exc.to_dict(include_detail=not _is_production())), exc.status_code


def handle_database_error(exc):
    current_app.logger.exception(f"[db] {request.method} {request.path} failed")
    return handle_api_error(InternalError(detail=str(exc)))


def handle_http_error(exc):
    if exc.code == 404:
        return jsonify({'success': False, 'message': 'Route not found'}), 404
    return jsonify({'success': False, 'message': exc.description}), exc.code


def handle_unexpected_error(exc):
    current_app.logger.exception(f"[error] unhandled exception on {request.method} {request.path}")
    return jsonify(InternalError('Something went wrong!', detail=str(exc)).to_dict(
        include_detail=not _is_production())), 500


def register_error_handlers(app):
    app.register_error_handler(ApiError, handle_api_error)
    app.register_error_handler(SQLAlchemyError, handle_database_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)
