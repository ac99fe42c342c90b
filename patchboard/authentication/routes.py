# patchboard/authentication/routes.py
import re
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from patchboard.init_db import db
from patchboard.logging_config import setup_logging
from patchboard.errors import ApiError, ValidationError, error_response
from patchboard.authentication import views


auth_bp = Blueprint('auth', __name__)

# Setup logging
logger = setup_logging()

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
OTP_PATTERN = re.compile(r"^\d{6}$")


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data, field):
    value = data.get(field)
    return value if isinstance(value, str) else ''


def _check_email(errors, email):
    if not EMAIL_PATTERN.match(email.strip()):
        errors.append({'field': 'email', 'message': 'Please include a valid email'})


def _raise_if_invalid(errors):
    if errors:
        raise ValidationError(errors[0]['message'], errors=errors)


def _server_error(action, e):
    db.session.rollback()
    logger.error(f"Error during {action}: {e}")
    return jsonify({'success': False, 'message': 'Server error'}), 500


@auth_bp.route('/register', methods=['POST'])
def register():
    try:
        data = _json_body()
        name = _text(data, 'name').strip()
        email = _text(data, 'email')
        password = _text(data, 'password')

        errors = []
        if not name:
            errors.append({'field': 'name', 'message': 'Name is required'})
        _check_email(errors, email)
        if len(password) < 6:
            errors.append({'field': 'password', 'message': 'Password must be at least 6 characters'})
        _raise_if_invalid(errors)

        user = views.register_user(name, email, password)
        return jsonify({
            'success': True,
            'message': 'Registration successful. Please check your email for verification OTP.',
            'user': user.to_public_dict(),
        }), 201

    except ApiError as e:
        logger.warning(f"Registration rejected: {e.message}")
        return error_response(e)
    except Exception as e:
        return _server_error('registration', e)


@auth_bp.route('/verify-email', methods=['POST'])
def verify_email():
    try:
        data = _json_body()
        email = _text(data, 'email')
        otp = _text(data, 'otp').strip()

        errors = []
        _check_email(errors, email)
        if not OTP_PATTERN.match(otp):
            errors.append({'field': 'otp', 'message': 'OTP must be 6 digits'})
        _raise_if_invalid(errors)

        token, user = views.verify_email(email, otp)
        return jsonify({
            'success': True,
            'message': 'Email verified successfully',
            'token': token,
            'user': user.to_public_dict(),
        }), 200

    except ApiError as e:
        logger.warning(f"Email verification rejected: {e.message}")
        return error_response(e)
    except Exception as e:
        return _server_error('email verification', e)


@auth_bp.route('/login', methods=['POST'])
def login():
    try:
        data = _json_body()
        email = _text(data, 'email')

        errors = []
        _check_email(errors, email)
        if 'password' not in data or not isinstance(data.get('password'), str):
            errors.append({'field': 'password', 'message': 'Password is required'})
        _raise_if_invalid(errors)

        token, user = views.login_user(email, data['password'])
        return jsonify({'success': True, 'token': token, 'user': user.to_public_dict()}), 200

    except ApiError as e:
        logger.warning(f"Failed login attempt for email: {_text(_json_body(), 'email')}")
        return error_response(e)
    except Exception as e:
        return _server_error('login', e)


@auth_bp.route('/resend-otp', methods=['POST'])
def resend_otp():
    try:
        data = _json_body()
        email = _text(data, 'email')

        errors = []
        _check_email(errors, email)
        _raise_if_invalid(errors)

        views.resend_otp(email)
        return jsonify({'success': True, 'message': 'OTP sent successfully. Please check your email.'}), 200

    except ApiError as e:
        logger.warning(f"OTP resend rejected: {e.message}")
        return error_response(e)
    except Exception as e:
        return _server_error('OTP resend', e)


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    try:
        user_profile = views.get_profile(current_user)
        logger.info(f"User profile fetched successfully for email: {current_user.email}")
        return jsonify({'success': True, 'user': user_profile}), 200

    except Exception as e:
        return _server_error('profile fetch', e)
