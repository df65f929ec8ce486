"""Error taxonomy for booking and permission operations.

Every error carries the HTTP status it maps to and a short machine readable
code. Services raise them; ``register_error_handlers`` turns them into JSON
responses at the boundary.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class BookingAppError(Exception):
    status_code = 400
    code = 'error'
    default_message = 'Request failed.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class MissingFields(BookingAppError):
    status_code = 400
    code = 'missing_fields'
    default_message = 'Missing required fields.'

    def __init__(self, fields=None, message=None):
        self.fields = list(fields or [])
        if message is None and self.fields:
            message = 'Missing required fields: ' + ', '.join(self.fields)
        super().__init__(message)

    def to_dict(self):
        data = super().to_dict()
        if self.fields:
            data['fields'] = self.fields
        return data


class InvalidTimeRange(BookingAppError):
    status_code = 400
    code = 'invalid_time_range'
    default_message = 'Start time must be before end time.'


class Unauthenticated(BookingAppError):
    status_code = 401
    code = 'unauthenticated'
    default_message = 'Authentication required.'


class Forbidden(BookingAppError):
    status_code = 403
    code = 'forbidden'
    default_message = 'You are not allowed to perform this action.'


class NotFound(BookingAppError):
    status_code = 404
    code = 'not_found'
    default_message = 'Not found.'


class TimeConflict(BookingAppError):
    status_code = 409
    code = 'time_conflict'
    default_message = 'Room is already booked for this interval.'


class AlreadyExists(BookingAppError):
    status_code = 409
    code = 'already_exists'
    default_message = 'Resource already exists.'


class StorageError(BookingAppError):
    status_code = 500
    code = 'storage_error'
    default_message = 'Internal storage error.'


def register_error_handlers(app):
    @app.errorhandler(BookingAppError)
    def handle_booking_error(error):
        if isinstance(error, StorageError):
            # Details are logged where the failure happened, never sent to the client
            return jsonify({'error': error.code, 'message': StorageError.default_message}), error.status_code
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # Unknown routes, wrong methods and the like: same JSON shape as our errors
        return jsonify({'error': error.name.lower().replace(' ', '_'), 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error: %s", error)
        return jsonify({'error': 'server_error', 'message': 'Server Error'}), 500
