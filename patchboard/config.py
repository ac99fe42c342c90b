# patchboard/config.py
import os
import binascii
from datetime import timedelta


def _env_list(name, default):
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', binascii.hexlify(os.urandom(24)).decode())

    BASE_DIR = os.path.abspath(os.path.dirname(__file__))

    DATABASE_PATH = os.path.join(BASE_DIR, 'patchboard.db')

    # Hosted Postgres providers still hand out the legacy postgres:// scheme.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', f'sqlite:///{DATABASE_PATH}').replace(
        'postgres://', 'postgresql://', 1)

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=30)

    OTP_EXPIRY_MINUTES = int(os.environ.get('OTP_EXPIRY', 10))
    PASSWORD_HASH_METHOD = os.environ.get('PASSWORD_HASH_METHOD', 'pbkdf2:sha256')

    BREVO_API_KEY = os.environ.get('BREVO_API_KEY')
    EMAIL_CONFIG_PATH = os.environ.get('EMAIL_CONFIG_PATH', os.path.join(BASE_DIR, 'email_config.json'))
    MAIL_SENDER_EMAIL = os.environ.get('MAIL_SENDER_EMAIL', 'no-reply@patchboard.local')
    MAIL_SENDER_NAME = os.environ.get('MAIL_SENDER_NAME', 'Patchboard')
    MAIL_SUPPRESS_SEND = os.environ.get('MAIL_SUPPRESS_SEND', 'false').lower() == 'true'

    CORS_ORIGINS = _env_list('CORS_ORIGINS', 'http://localhost:5173')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE') or None

    API_PREFIX = os.environ.get('API_PREFIX', '/api')


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    MAIL_SUPPRESS_SEND = True
    EMAIL_CONFIG_PATH = None
    SOCKETIO_ASYNC_MODE = 'threading'
