"""Shared fixtures: an in-memory app, a test client and seeded users."""

import pytest

from lcms import create_app
from lcms.config import Config
from lcms.extensions import db
from lcms.models import User, UserRole

PASSWORD = 'TestPass123!'


class TestConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'test-secret-key'
    RATELIMIT_ENABLED = False
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False


@pytest.fixture
def app():
    """Create and configure a test application instance."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory creating a user and returning its id."""
    def _make_user(email, role=UserRole.ADMIN, full_name=None, active=True):
        with app.app_context():
            user = User(email=email, role=role, full_name=full_name, active=active)
            user.set_password(PASSWORD)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def login(client):
    """Log the shared client in as the given email."""
    def _login(email, password=PASSWORD):
        return client.post('/auth/login', json={'email': email, 'password': password})
    return _login


@pytest.fixture
def admin(make_user, login):
    user_id = make_user('admin@league.org', UserRole.ADMIN, 'Admin User')
    response = login('admin@league.org')
    assert response.status_code == 200
    return user_id
