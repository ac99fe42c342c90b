# patchboard/canvas/models.py
from patchboard.init_db import db
from patchboard.authentication.models import utcnow


class CanvasBoard(db.Model):
    __tablename__ = 'canvas_boards'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, nullable=False, index=True)
    image_url = db.Column(db.Text, nullable=False, default='')
    patches = db.Column(db.JSON, nullable=False, default=list)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='board')

    def to_dict(self):
        return {
            'imageUrl': self.image_url or '',
            'patches': list(self.patches or []),
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
