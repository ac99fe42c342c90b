# patchboard/client/board_client.py
import requests
import socketio
from patchboard.client.edit_buffer import EditBuffer, ThreadingScheduler
from patchboard.logging_config import setup_logging

logger = setup_logging()


class ApiRequestError(Exception):
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(self.payload.get('message') or f'HTTP {status_code}')


class BoardClient:
    """Talks to the REST API and mirrors the user's board through Socket.IO."""

    def __init__(self, base_url, api_prefix='/api', http=None, sio=None, scheduler=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.api_url = self.base_url + api_prefix
        self.http = http or requests.Session()
        self.sio = sio or socketio.Client(reconnection=True)
        self.scheduler = scheduler or ThreadingScheduler()
        self.timeout = timeout
        self.token = None
        self.user = None
        self.buffer = None
        self.image_url = ''
        self.sio.on('connect', self._on_connect)
        self.sio.on('board:update', self._on_board_update)

    def _headers(self):
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        if self.sio.connected and self.sio.get_sid():
            headers['X-Socket-Id'] = self.sio.get_sid()
        return headers

    def _request(self, method, path, payload=None):
        response = self.http.request(method, self.api_url + path, json=payload, headers=self._headers(), timeout=self.timeout)
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            raise ApiRequestError(response.status_code, body)
        return body

    # Auth

    def register(self, name, email, password):
        return self._request('POST', '/auth/register', {'name': name, 'email': email, 'password': password})

    def resend_otp(self, email):
        return self._request('POST', '/auth/resend-otp', {'email': email})

    def _store_session(self, body):
        self.token = body.get('token')
        self.user = body.get('user')
        return body

    def verify_email(self, email, otp):
        return self._store_session(self._request('POST', '/auth/verify-email', {'email': email, 'otp': otp}))

    def login(self, email, password):
        return self._store_session(self._request('POST', '/auth/login', {'email': email, 'password': password}))

    def me(self):
        body = self._request('GET', '/auth/me')
        self.user = body.get('user')
        return self.user

    # Board

    def save_patches(self, patches):
        return self._request('PUT', '/canvas', {'patches': patches})

    def set_image(self, image_url):
        body = self._request('PUT', '/canvas', {'imageUrl': image_url})
        self.image_url = body['board']['imageUrl']
        return body['board']

    def open_board(self, cached_patches=None, connect=True):
        board = self._request('GET', '/canvas')['board']
        self.image_url = board.get('imageUrl', '')
        if self.buffer is None:
            self.buffer = EditBuffer(self.save_patches, scheduler=self.scheduler)
        self.buffer.seed(board.get('patches') or [], cached=cached_patches)
        if connect and not self.sio.connected:
            self.sio.connect(self.base_url, transports=['websocket'])
        return self.buffer

    def _on_connect(self):
        if self.token:
            self.sio.emit('auth:join', {'token': self.token}, callback=self._on_joined)

    def _on_joined(self, ack=None):
        if not ack or not ack.get('success'):
            logger.warning(f"Joining the board room failed: {(ack or {}).get('message')}")

    def _on_board_update(self, data):
        if not isinstance(data, dict) or self.buffer is None:
            return
        if isinstance(data.get('imageUrl'), str):
            self.image_url = data['imageUrl']
        self.buffer.receive_remote(data.get('patches'))

    def logout(self):
        # Requests already sent are left to finish; their results are ignored
        if self.buffer is not None:
            self.buffer.close()
            self.buffer = None
        if self.sio.connected:
            self.sio.disconnect()
        self.token = None
        self.user = None
