# patchboard/realtime/registry.py
import threading
from patchboard.logging_config import setup_logging
from patchboard.realtime import BOARD_UPDATE_EVENT, room_for

logger = setup_logging()


class SessionRegistry:
    """Live socket sessions grouped by user, plus fan-out to a user's room.

    Sessions are added when a socket joins with a valid token and removed on
    disconnect. ``publish`` is fire-and-forget: no acknowledgement, no retry.
    """

    def __init__(self, socketio):
        self.socketio = socketio
        self._lock = threading.Lock()
        self._sessions = {}
        self._owners = {}

    def add(self, user_id, sid):
        """Register ``sid`` under ``user_id`` and return its previous owner, if different."""
        with self._lock:
            previous = self._owners.get(sid)
            if previous is not None and previous != user_id:
                self._discard(previous, sid)
            else:
                previous = None
            self._owners[sid] = user_id
            self._sessions.setdefault(user_id, set()).add(sid)
            return previous

    def remove(self, sid):
        with self._lock:
            user_id = self._owners.pop(sid, None)
            if user_id is not None:
                self._discard(user_id, sid)
            return user_id

    def _discard(self, user_id, sid):
        sids = self._sessions.get(user_id)
        if sids is None:
            return
        sids.discard(sid)
        if not sids:
            del self._sessions[user_id]

    def sessions_for(self, user_id):
        with self._lock:
            return set(self._sessions.get(user_id, ()))

    def publish(self, user_id, payload, skip_sid=None):
        recipients = self.sessions_for(user_id) - {skip_sid}
        self.socketio.emit(BOARD_UPDATE_EVENT, payload, to=room_for(user_id), skip_sid=skip_sid)
        logger.info(f"Published board update for user {user_id} to {len(recipients)} session(s).")
        return len(recipients)
