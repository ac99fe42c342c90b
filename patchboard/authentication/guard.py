# patchboard/authentication/guard.py
from flask import current_app
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from patchboard.init_db import db
from patchboard.authentication.models import User
from patchboard.errors import InvalidToken, MissingToken, Unverified, UserNotFound


def bearer_token_from_header(header_value):
    if not header_value or not header_value.startswith('Bearer '):
        return None
    return header_value[len('Bearer '):].strip() or None


def authenticate(bearer_token):
    """Resolve a session token to its verified ``User`` or raise the matching 401."""
    if not bearer_token:
        raise MissingToken()

    try:
        decoded = decode_token(bearer_token)
    except (PyJWTError, JWTExtendedException):
        raise InvalidToken()

    identity = decoded.get(current_app.config.get('JWT_IDENTITY_CLAIM', 'sub'))
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise InvalidToken()

    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFound()
    if not user.is_verified:
        raise Unverified()
    return user


# Flask-Login request loader: every @login_required route goes through the guard
def load_user_from_request(request):
    return authenticate(bearer_token_from_header(request.headers.get('Authorization')))
