# patchboard/authentication/models.py
from datetime import datetime, timezone
from flask_login import UserMixin
from patchboard.init_db import db


def utcnow():
    # Naive UTC, matching what SQLite hands back for DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password = db.Column(db.String(256), nullable=False)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    otp_hash = db.Column(db.String(256), nullable=True)
    otp_expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    board = db.relationship('CanvasBoard', back_populates='user', uselist=False)

    @property
    def has_pending_otp(self):
        return bool(self.otp_hash) and self.otp_expires_at is not None

    def clear_otp(self):
        self.otp_hash = None
        self.otp_expires_at = None

    def to_public_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'isVerified': bool(self.is_verified),
        }

    def to_profile_dict(self):
        profile = self.to_public_dict()
        profile['createdAt'] = self.created_at.isoformat() if self.created_at else None
        return profile

    def __repr__(self):
        return f'<User {self.email}>'
