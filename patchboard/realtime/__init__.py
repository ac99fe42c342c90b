# patchboard/realtime/__init__.py
from flask_socketio import SocketIO

socketio = SocketIO()

BOARD_UPDATE_EVENT = 'board:update'
JOIN_EVENT = 'auth:join'


def room_for(user_id):
    return str(user_id)
