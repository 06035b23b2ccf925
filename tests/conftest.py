"""
Shared fixtures: in-memory database, Flask app/client and user factories.
"""

import pytest
from sqlalchemy.pool import StaticPool

from healthapp import store
from healthapp.api.app import create_app
from healthapp.api.auth import issue_token, principal_from_user
from healthapp.config import AUTH_COOKIE_NAME
from healthapp.database import init_engine
from healthapp.passwords import hash_password


@pytest.fixture
def engine():
    eng = init_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield eng
    eng.dispose()


@pytest.fixture
def app(engine):
    app = create_app(engine)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(engine):
    """Create a user row and return it as a dict."""
    counter = {"n": 0}

    def _make(role="patient", email=None, password="secret1", name=None, **extra):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.com"
        user_id = store.create_user(engine, {
            "email": email,
            "password_hash": hash_password(password),
            "name": name or f"{role.title()} {counter['n']}",
            "role": role,
            **extra,
        })
        return store.find_user_by_id(engine, user_id)

    return _make


@pytest.fixture
def login_as(client):
    """Put a session cookie for *user* on the test client."""
    def _login(user):
        client.set_cookie(AUTH_COOKIE_NAME, issue_token(principal_from_user(user)))
        return user

    return _login
