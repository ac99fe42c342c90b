# patchboard/realtime/events.py
from flask import current_app, request
from flask_socketio import join_room, leave_room
from patchboard.errors import Unauthorized
from patchboard.logging_config import setup_logging
from patchboard.authentication.guard import authenticate
from patchboard.realtime import socketio, JOIN_EVENT, room_for

logger = setup_logging()


def get_registry():
    return current_app.extensions['patchboard.registry']


@socketio.on(JOIN_EVENT)
def on_join(data):
    token = data.get('token') if isinstance(data, dict) else data
    try:
        user = authenticate(token)
    except Unauthorized as e:
        logger.warning(f"Socket {request.sid} join rejected: {e.message}")
        return {'success': False, 'message': e.message}

    previous = get_registry().add(user.id, request.sid)
    if previous is not None:
        leave_room(room_for(previous))
        logger.info(f"Socket {request.sid} left room for user {previous}.")
    join_room(room_for(user.id))
    logger.info(f"Socket {request.sid} joined room for user {user.id}.")
    return {'success': True, 'room': room_for(user.id)}


@socketio.on('disconnect')
def on_disconnect(*args):
    user_id = get_registry().remove(request.sid)
    if user_id is not None:
        logger.info(f"Socket {request.sid} left room for user {user_id}.")
