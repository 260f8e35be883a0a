"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the TestingConfig database (in-memory SQLite unless
    TEST_DATABASE_URL points somewhere else).
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order and the list cache
    is cleared so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - register(client, ...)    → registration response body
  - get_token(client, ...)   → AuthResult dict from POST /api/tokens
  - auth_headers(token)      → {"Authorization": "Bearer <token>"}
  - make_movie(client, ...)  → HTTP response of POST /api/movies
  - make_admin(app, email)   → grants Administrator directly in the DB

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from movie_api.app import create_app
from movie_api.app.extensions import cache as _cache
from movie_api.app.extensions import db as _db

DEFAULT_PASSWORD = "Password1"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Deletes all rows between tests in FK-safe order and empties the cache.
    """
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM refresh_tokens"))
            conn.execute(text("DELETE FROM user_roles"))
            conn.execute(text("DELETE FROM users"))
            conn.execute(text("DELETE FROM movies"))
            conn.commit()

    _cache.clear()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (and cookie jar)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def register(
    client,
    username: str = "alice",
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
) -> dict:
    """Registers a new user and returns the response body ({message})."""
    if email is None:
        email = f"{username}@test.com"
    resp = client.post(
        "/api/users/register",
        json={
            "firstName": username.capitalize(),
            "lastName": "Tester",
            "username": username,
            "email": email,
            "password": password,
        },
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return resp.get_json()


def get_token(client, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Logs in via POST /api/tokens and returns the AuthResult dict."""
    resp = client.post("/api/tokens", json={"email": email, "password": password})
    assert resp.status_code == 200, f"get_token failed: {resp.get_json()}"
    return resp.get_json()


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_movie(
    client,
    title: str = "Alien",
    genre: str = "Horror",
    release_date: str = "1979-05-25T00:00:00+00:00",
    rating: float = 8.5,
):
    """Creates a movie and returns the HTTP response."""
    return client.post(
        "/api/movies",
        json={
            "title": title,
            "genre": genre,
            "releaseDate": release_date,
            "rating": rating,
        },
    )


def make_admin(app, email: str) -> None:
    """Grants the Administrator role to an existing user straight in the DB."""
    from movie_api.app.models.user import User
    from movie_api.app.models.user_role import Role, UserRole

    with app.app_context():
        user = _db.session.execute(
            _db.select(User).where(User.email == email)
        ).scalar_one()
        user.roles.append(UserRole(role=Role.ADMINISTRATOR.value))
        _db.session.commit()
