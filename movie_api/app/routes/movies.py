"""
routes/movies.py — Movie route handlers.

Layer rules:
  - Parse request body / query
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Return the response body

No business logic here. No DB queries. Domain errors propagate to the global
error handler in app/__init__.py — routes never catch them.

Endpoints (url_prefix=/api/movies):
  POST   /api/movies          → 201
  GET    /api/movies          → 200  ?currentPage=&pageSize=
  GET    /api/movies/<id>     → 200 / 404
  PUT    /api/movies/<id>     → 204  partial update
  DELETE /api/movies/<id>     → 204
"""

from __future__ import annotations

import uuid

from flask import Blueprint, current_app, jsonify, request, url_for

from movie_api.app.extensions import cache, db
from movie_api.app.schemas.movie_schema import (
    CreateMovieSchema,
    PaginationQuerySchema,
    UpdateMovieSchema,
)
from movie_api.app.services import movie_service

movies_bp = Blueprint("movies", __name__)


def _resolve_paging(current_page: int | None, page_size: int | None) -> tuple[int, int]:
    """Applies PAGINATION_* defaults: page >= 1, 1 <= size <= max."""
    config = current_app.config
    page = max(1, current_page if current_page is not None else config["PAGINATION_PAGE"])
    if page_size is not None and page_size >= 1:
        size = min(page_size, config["PAGINATION_MAX_PAGE_SIZE"])
    else:
        size = config["PAGINATION_PAGE_SIZE"]
    return page, size


@movies_bp.route("", methods=["POST"])
def create_movie():
    """POST /api/movies — Create a movie."""
    data = CreateMovieSchema().load(request.get_json(force=True) or {})
    result = movie_service.create_movie(data, session=db.session, cache=cache)
    db.session.commit()

    response = jsonify(result)
    response.status_code = 201
    response.headers["Location"] = url_for("movies.get_movie", movie_id=result["id"])
    return response


@movies_bp.route("", methods=["GET"])
def list_movies():
    """GET /api/movies — One page of movies ordered by title, then id."""
    query = PaginationQuerySchema().load(request.args)
    page, page_size = _resolve_paging(query["current_page"], query["page_size"])
    result = movie_service.list_movies(
        page=page,
        page_size=page_size,
        session=db.session,
        cache=cache,
    )
    return jsonify(result), 200


@movies_bp.route("/<uuid:movie_id>", methods=["GET"])
def get_movie(movie_id: uuid.UUID):
    """GET /api/movies/<id> — Single movie or 404."""
    result = movie_service.get_movie(movie_id, session=db.session)
    return jsonify(result), 200


@movies_bp.route("/<uuid:movie_id>", methods=["PUT"])
def update_movie(movie_id: uuid.UUID):
    """PUT /api/movies/<id> — Partial update; absent fields keep their value."""
    data = UpdateMovieSchema().load(request.get_json(force=True) or {})
    movie_service.update_movie(movie_id, data, session=db.session, cache=cache)
    db.session.commit()
    return "", 204


@movies_bp.route("/<uuid:movie_id>", methods=["DELETE"])
def delete_movie(movie_id: uuid.UUID):
    """DELETE /api/movies/<id>"""
    movie_service.delete_movie(movie_id, session=db.session, cache=cache)
    db.session.commit()
    return "", 204
