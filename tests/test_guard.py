from datetime import timedelta
import pytest
from flask_jwt_extended import create_access_token
from patchboard.authentication.guard import authenticate, bearer_token_from_header
from patchboard.authentication.models import User
from patchboard.errors import InvalidToken, MissingToken, Unverified, UserNotFound
from conftest import bearer


def token_for(app, identity, **kwargs):
    with app.app_context():
        return create_access_token(identity=str(identity), **kwargs)


def user_id(app, email):
    with app.app_context():
        return User.query.filter_by(email=email).first().id


@pytest.mark.parametrize('header, expected', [
    ('Bearer abc.def.ghi', 'abc.def.ghi'),
    ('Bearer ', None),
    ('Token abc', None),
    ('Bearerxyz abc', None),
    ('Bearer', None),
    (None, None),
])
def test_bearer_token_from_header(header, expected):
    assert bearer_token_from_header(header) == expected


def test_missing_token(client):
    response = client.get('/api/auth/me')

    assert response.status_code == 401
    assert response.get_json() == {'success': False, 'message': 'Not authorized, no token provided'}


def test_garbage_token(client):
    response = client.get('/api/auth/me', headers=bearer('not-a-jwt'))

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Not authorized, token failed'


def test_token_signed_with_other_secret(app, client, verified_token):
    verified_token()
    app.config['JWT_SECRET_KEY'] = 'another-secret-key-that-is-long-enough'
    forged = token_for(app, user_id(app, 'bob@example.com'))
    app.config['JWT_SECRET_KEY'] = 'test-jwt-secret-key-with-enough-length'

    response = client.get('/api/canvas', headers=bearer(forged))

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Not authorized, token failed'


def test_expired_token(app, client, verified_token):
    verified_token()
    expired = token_for(app, user_id(app, 'bob@example.com'), expires_delta=timedelta(seconds=-5))

    response = client.get('/api/auth/me', headers=bearer(expired))

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Not authorized, token failed'


def test_token_for_deleted_user(app, client):
    response = client.get('/api/auth/me', headers=bearer(token_for(app, 9999)))

    assert response.status_code == 401
    assert response.get_json()['message'] == 'User not found'


def test_token_for_unverified_user(app, client, register):
    register()
    token = token_for(app, user_id(app, 'bob@example.com'))

    response = client.get('/api/canvas', headers=bearer(token))

    assert response.status_code == 401
    assert response.get_json()['message'] == 'Please verify your email to access this resource'


def test_guard_failures_do_not_create_boards(app, client, register):
    register()
    client.get('/api/canvas', headers=bearer(token_for(app, user_id(app, 'bob@example.com'))))

    with app.app_context():
        assert User.query.filter_by(email='bob@example.com').first().board is None


def test_authenticate_raises_specific_errors(app, register, verified_token):
    register(email='pending@example.com')
    verified_token(email='ok@example.com')

    with app.app_context():
        with pytest.raises(MissingToken):
            authenticate(None)
        with pytest.raises(InvalidToken):
            authenticate('abc')
        with pytest.raises(UserNotFound):
            authenticate(create_access_token(identity='4242'))
        with pytest.raises(Unverified):
            pending = User.query.filter_by(email='pending@example.com').first()
            authenticate(create_access_token(identity=str(pending.id)))

        ok = User.query.filter_by(email='ok@example.com').first()
        assert authenticate(create_access_token(identity=str(ok.id))).email == 'ok@example.com'
