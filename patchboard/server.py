# patchboard/server.py
import os
from patchboard.app_factory import create_app
from patchboard.realtime import socketio


def main():
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    # eventlet or gevent, when installed, take over from the Werkzeug server
    socketio.run(app, host="0.0.0.0", port=port, allow_unsafe_werkzeug=True)


if __name__ == '__main__':
    main()
