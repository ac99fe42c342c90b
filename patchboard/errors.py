# patchboard/errors.py
"""Error taxonomy shared by the auth and canvas blueprints.

Every expected failure is an ``ApiError`` carrying the HTTP status it maps to, so
route handlers and the app-level error handler can turn it into the same
``{'success': False, 'message': ...}`` payload.
"""
from flask import jsonify


class ApiError(Exception):
    status_code = 500
    message = 'Server error'

    def __init__(self, message=None, status_code=None, errors=None, detail=None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        self.detail = detail

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(ApiError):
    status_code = 400
    message = 'Invalid request'


class Conflict(ApiError):
    status_code = 400
    message = 'Conflict'


class NotFound(ApiError):
    status_code = 404
    message = 'Not found'


class Unauthorized(ApiError):
    status_code = 401
    message = 'Not authorized'


class DeliveryFailed(ApiError):
    status_code = 500
    message = 'Failed to send verification email'

    def to_dict(self):
        payload = super().to_dict()
        if self.detail:
            payload['error'] = self.detail
        return payload


class ServerError(ApiError):
    pass


# Auth service outcomes

class EmailAlreadyRegistered(Conflict):
    message = 'User already exists'


class AlreadyVerified(Conflict):
    message = 'Email already verified'


class NoPendingOtp(ValidationError):
    message = 'OTP not found. Please request a new one.'


class OtpExpired(ValidationError):
    message = 'OTP has expired. Please request a new one.'


class OtpMismatch(ValidationError):
    message = 'Invalid OTP'


class InvalidCredentials(ApiError):
    status_code = 400
    message = 'Invalid credentials'


class UnverifiedEmail(Unauthorized):
    message = 'Email not verified. A new verification OTP has been sent to your email.'


class UserNotRegistered(NotFound):
    message = 'User not found'


# Session guard outcomes

class MissingToken(Unauthorized):
    message = 'Not authorized, no token provided'


class InvalidToken(Unauthorized):
    message = 'Not authorized, token failed'


class UserNotFound(Unauthorized):
    message = 'User not found'


class Unverified(Unauthorized):
    message = 'Please verify your email to access this resource'


def error_response(error):
    return jsonify(error.to_dict()), error.status_code
