"""
schemas/movie_schema.py — Marshmallow schemas for movie endpoints.

Validation responsibility:
  - This file: field presence, types, datetime format, max lengths.
  - models/movie.py: non-blank title/genre and the 0–10 rating range, so the
    same rule (and message) applies to every create and update path.

IMPORTANT: Inherits from marshmallow.Schema directly. See extensions.py.
"""

from __future__ import annotations

from datetime import timezone

from marshmallow import EXCLUDE, Schema, fields, validate

_title_length = validate.Length(max=200, error="Title must be at most 200 characters.")
_genre_length = validate.Length(max=100, error="Genre must be at most 100 characters.")


class CreateMovieSchema(Schema):
    """POST /api/movies — body {title, genre, releaseDate, rating}."""

    title = fields.Str(required=True, validate=_title_length)
    genre = fields.Str(required=True, validate=_genre_length)

    # Naive timestamps are read as UTC.
    release_date = fields.AwareDateTime(
        required=True,
        data_key="releaseDate",
        default_timezone=timezone.utc,
    )

    rating = fields.Float(required=True, allow_nan=False)


class UpdateMovieSchema(Schema):
    """
    PUT /api/movies/<id> — partial update.

    Every field is optional and nullable. Absent or null fields keep their
    current value (see movie_service.update_movie).
    """

    title = fields.Str(required=False, allow_none=True, validate=_title_length)
    genre = fields.Str(required=False, allow_none=True, validate=_genre_length)
    release_date = fields.AwareDateTime(
        required=False,
        allow_none=True,
        data_key="releaseDate",
        default_timezone=timezone.utc,
    )
    rating = fields.Float(required=False, allow_none=True, allow_nan=False)


class PaginationQuerySchema(Schema):
    """
    GET /api/movies?currentPage=&pageSize=

    Both are optional; the route resolves defaults and caps from config.
    """

    class Meta:
        unknown = EXCLUDE

    current_page = fields.Int(load_default=None, data_key="currentPage")
    page_size = fields.Int(load_default=None, data_key="pageSize")
