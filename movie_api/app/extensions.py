"""
extensions.py — Flask extension singletons.

Initialises SQLAlchemy and the in-memory cache as module-level objects so
they can be imported anywhere without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` or `cache` from here wherever needed.

    from movie_api.app.extensions import db, cache

Do not pass the app object to SQLAlchemy() at import time — that would
prevent running tests with a separate test app instance.

Schema rule:
  All validation Schema classes (in app/schemas/) inherit from
  marshmallow.Schema directly, so unit tests can load them without a Flask
  application context.
"""

from flask_sqlalchemy import SQLAlchemy

from movie_api.app.cache import MemoryCache

db = SQLAlchemy()

# Shared by every request handler in the process. Holds movie list pages.
cache = MemoryCache()
