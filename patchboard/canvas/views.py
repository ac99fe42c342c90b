# patchboard/canvas/views.py
from numbers import Number
from flask import current_app
from sqlalchemy.exc import IntegrityError
from patchboard.init_db import db
from patchboard.authentication.models import utcnow
from patchboard.canvas.models import CanvasBoard
from patchboard.errors import ValidationError
from patchboard.logging_config import setup_logging

logger = setup_logging()

PATCH_NUMBER_FIELDS = ('x', 'y', 'w', 'h', 'opacity')


class _Missing:
    """Presence marker for a field the client did not send."""

    def __repr__(self):
        return 'MISSING'

    def __bool__(self):
        return False


MISSING = _Missing()


def is_present(value):
    return value is not MISSING


def clean_patch(index, patch):
    if not isinstance(patch, dict):
        raise ValidationError('Invalid patch', errors=[{'field': f'patches[{index}]', 'message': 'Patch must be an object'}])

    errors = []
    if not isinstance(patch.get('id'), str) or not patch['id']:
        errors.append({'field': f'patches[{index}].id', 'message': 'Patch id must be a non-empty string'})
    for field in PATCH_NUMBER_FIELDS:
        value = patch.get(field)
        if value is not None and (isinstance(value, bool) or not isinstance(value, Number)):
            errors.append({'field': f'patches[{index}].{field}', 'message': f'{field} must be a number'})
    if patch.get('color') is not None and not isinstance(patch['color'], str):
        errors.append({'field': f'patches[{index}].color', 'message': 'color must be a string'})
    if errors:
        raise ValidationError('Invalid patch', errors=errors)

    # Ranges are deliberately not enforced; only the known keys are kept
    cleaned = {'id': patch['id']}
    for field in PATCH_NUMBER_FIELDS + ('color',):
        if field in patch:
            cleaned[field] = patch[field]
    return cleaned


class BoardUpdate:
    """A partial board write. Each field is either ``MISSING`` or the value to store."""

    def __init__(self, image_url=MISSING, patches=MISSING):
        self.image_url = image_url
        self.patches = patches

    @classmethod
    def from_json(cls, data):
        if not isinstance(data, dict):
            return cls()
        image_url = data.get('imageUrl', MISSING)
        patches = data.get('patches', MISSING)
        # Wrong shapes count as absent rather than as a request to clear
        if not isinstance(image_url, str):
            image_url = MISSING
        if isinstance(patches, list):
            patches = [clean_patch(i, p) for i, p in enumerate(patches)]
        else:
            patches = MISSING
        return cls(image_url=image_url, patches=patches)

    @property
    def is_empty(self):
        return not is_present(self.image_url) and not is_present(self.patches)

    def apply(self, board):
        if is_present(self.image_url):
            board.image_url = self.image_url
        if is_present(self.patches):
            board.patches = list(self.patches)
        board.updated_at = utcnow()

    def __repr__(self):
        return f'<BoardUpdate image_url={self.image_url!r} patches={self.patches!r}>'


def get_registry():
    return current_app.extensions['patchboard.registry']


def get_or_create_board(user):
    board = CanvasBoard.query.filter_by(user_id=user.id).first()
    if board:
        return board

    board = CanvasBoard(user_id=user.id, image_url='', patches=[])
    db.session.add(board)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request created it first
        db.session.rollback()
        board = CanvasBoard.query.filter_by(user_id=user.id).one()
    else:
        logger.info(f"Created canvas board for user {user.id}.")
    return board


def fan_out(user_id, board, skip_sid=None):
    payload = {'imageUrl': board.image_url or '', 'patches': list(board.patches or [])}
    try:
        get_registry().publish(user_id, payload, skip_sid=skip_sid)
    except Exception as e:
        # The write is already committed and is what the next fetch returns
        logger.warning(f"Board fan-out for user {user_id} failed: {e}")


def update_board(user, update, origin_sid=None):
    board = get_or_create_board(user)
    update.apply(board)
    db.session.commit()
    logger.info(f"Canvas board updated for user {user.id}.")

    fan_out(user.id, board, skip_sid=origin_sid)
    return board
