import itertools
import pytest
from patchboard.app_factory import create_app
from patchboard.config import TestConfig
from patchboard.authentication import views as auth_views


class RecordingNotifier:
    def __init__(self):
        self.sent = []
        self.error = None

    def send_verification_email(self, email, otp):
        if self.error:
            return None, self.error
        self.sent.append((email, otp))
        return f'msg-{len(self.sent)}', None

    def last_code(self, email):
        for sent_to, otp in reversed(self.sent):
            if sent_to == email:
                return otp
        return None


class RecordingRegistry:
    def __init__(self):
        self.published = []
        self.error = None

    def publish(self, user_id, payload, skip_sid=None):
        if self.error:
            raise self.error
        self.published.append((user_id, payload, skip_sid))
        return 1

    def add(self, user_id, sid):
        pass

    def remove(self, sid):
        return None


@pytest.fixture
def app():
    app = create_app(TestConfig)
    app.extensions['patchboard.notifier'] = RecordingNotifier()
    app.extensions['patchboard.registry'] = RecordingRegistry()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def notifier(app):
    return app.extensions['patchboard.notifier']


@pytest.fixture
def registry(app):
    return app.extensions['patchboard.registry']


@pytest.fixture
def fixed_otps(monkeypatch):
    """Make generated OTPs come from the given sequence."""
    def use(*codes):
        sequence = itertools.cycle(codes)
        monkeypatch.setattr(auth_views, 'generate_otp', lambda: next(sequence))
    return use


@pytest.fixture
def register(client):
    def do_register(email='bob@example.com', password='secret1', name='Bob'):
        return client.post('/api/auth/register', json={'name': name, 'email': email, 'password': password})
    return do_register


@pytest.fixture
def verified_token(client, notifier, register):
    def make(email='bob@example.com', password='secret1', name='Bob'):
        register(email=email, password=password, name=name)
        response = client.post('/api/auth/verify-email', json={'email': email, 'otp': notifier.last_code(email)})
        assert response.status_code == 200
        return response.get_json()['token']
    return make


def bearer(token):
    return {'Authorization': f'Bearer {token}'}
