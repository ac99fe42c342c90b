# patchboard/authentication/views.py
import secrets
from datetime import timedelta
from flask import current_app
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash
from patchboard.init_db import db
from patchboard.authentication.models import User, utcnow
from patchboard.logging_config import setup_logging
from patchboard.errors import (
    AlreadyVerified, DeliveryFailed, EmailAlreadyRegistered, InvalidCredentials, NoPendingOtp,
    OtpExpired, OtpMismatch, UnverifiedEmail, UserNotRegistered,
)

logger = setup_logging()


def normalize_email(email):
    return (email or '').strip().lower()


def hash_secret(value):
    return generate_password_hash(str(value), method=current_app.config['PASSWORD_HASH_METHOD'])


# Function to generate a 6-digit OTP
def generate_otp():
    return str(secrets.randbelow(900000) + 100000)


def otp_expiry():
    return utcnow() + timedelta(minutes=current_app.config['OTP_EXPIRY_MINUTES'])


def get_notifier():
    return current_app.extensions['patchboard.notifier']


def issue_token(user):
    return create_access_token(identity=str(user.id))


def find_user(email):
    return User.query.filter_by(email=normalize_email(email)).first()


# Replaces any previous code; the old one stops matching as soon as this commits
def save_otp(user, otp):
    user.otp_hash = hash_secret(otp)
    user.otp_expires_at = otp_expiry()
    db.session.commit()


def deliver_otp(user, otp):
    message_id, error = get_notifier().send_verification_email(user.email, otp)
    if error:
        logger.error(f"OTP delivery to {user.email} failed: {error}")
        raise DeliveryFailed(detail=error)
    return message_id


def check_otp(user, otp):
    """Raise the specific OTP failure for ``user``, in existence, expiry, equality order."""
    if not user.has_pending_otp:
        raise NoPendingOtp()
    if user.otp_expires_at <= utcnow():
        raise OtpExpired()
    if not check_password_hash(user.otp_hash, str(otp)):
        raise OtpMismatch()


def register_user(name, email, password):
    email = normalize_email(email)
    if find_user(email):
        raise EmailAlreadyRegistered()

    otp = generate_otp()
    user = User(
        name=name.strip(),
        email=email,
        password=hash_secret(password),
        is_verified=False,
        otp_hash=hash_secret(otp),
        otp_expires_at=otp_expiry(),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent registration took the email first
        db.session.rollback()
        raise EmailAlreadyRegistered()
    logger.info(f"New user {email} registered, verification pending.")

    # The account stays in place when delivery fails; a resend recovers it
    deliver_otp(user, otp)
    return user


def verify_email(email, otp):
    user = find_user(email)
    if not user:
        raise UserNotRegistered()
    if user.is_verified:
        raise AlreadyVerified()

    check_otp(user, otp)

    user.is_verified = True
    user.clear_otp()
    db.session.commit()
    logger.info(f"User {user.email} verified their email.")
    return issue_token(user), user


def login_user(email, password):
    user = find_user(email)
    if not user:
        raise InvalidCredentials(status_code=404)
    if not check_password_hash(user.password, password or ''):
        raise InvalidCredentials()

    if not user.is_verified:
        otp = generate_otp()
        save_otp(user, otp)
        logger.info(f"Unverified login for {user.email}, new OTP issued.")
        try:
            deliver_otp(user, otp)
        except DeliveryFailed:
            # The login is refused either way; the user can ask for a resend
            pass
        raise UnverifiedEmail()

    logger.info(f"User {user.email} logged in successfully.")
    return issue_token(user), user


def resend_otp(email):
    user = find_user(email)
    if not user:
        raise UserNotRegistered()
    if user.is_verified:
        raise AlreadyVerified()

    otp = generate_otp()
    save_otp(user, otp)
    deliver_otp(user, otp)
    logger.info(f"OTP re-sent to {user.email}.")
    return user


def get_profile(user):
    return user.to_profile_dict()
