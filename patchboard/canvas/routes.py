# patchboard/canvas/routes.py
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from patchboard.init_db import db
from patchboard.errors import ApiError, error_response
from patchboard.logging_config import setup_logging
from patchboard.canvas.views import BoardUpdate, get_or_create_board, update_board


canvas_bp = Blueprint('canvas', __name__)

logger = setup_logging()


@canvas_bp.route('', methods=['GET'])
@login_required
def get_board():
    try:
        board = get_or_create_board(current_user)
        return jsonify({'success': True, 'board': board.to_dict()}), 200

    except Exception as e:
        db.session.rollback()
        logger.error(f"getBoard error: {e}")
        return jsonify({'success': False, 'message': 'Server error'}), 500


@canvas_bp.route('', methods=['PUT'])
@login_required
def put_board():
    try:
        update = BoardUpdate.from_json(request.get_json(silent=True))
        board = update_board(current_user, update, origin_sid=request.headers.get('X-Socket-Id'))
        return jsonify({'success': True, 'board': board.to_dict()}), 200

    except ApiError as e:
        logger.warning(f"Board update rejected for user {current_user.id}: {e.message}")
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"updateBoard error: {e}")
        return jsonify({'success': False, 'message': 'Server error'}), 500
