"""
services/movie_service.py — Movie CRUD and paginated listing.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session (and, where the
    list cache is involved, a MemoryCache) passed in by the route.
  - Commits are the route's responsibility — only flush here.
  - Domain errors (MovieNotFoundError, MovieValidationError) propagate to the
    global error handler; nothing is caught here.

Caching:
  list_movies() results are cached per (page, page_size) under keys sharing
  the "movies:" prefix. Every create / update / delete drops all of them
  before flushing, and again once the session commits: a list request that ran
  between the flush and the commit may have cached the pre-write rows.
"""

from __future__ import annotations

import logging
import math
import uuid

from sqlalchemy import event, func, select
from sqlalchemy.orm import Session

from movie_api.app.cache import MemoryCache
from movie_api.app.errors import MovieNotFoundError
from movie_api.app.models.movie import Movie
from movie_api.app.timeutils import as_utc

logger = logging.getLogger(__name__)

MOVIES_CACHE_PREFIX = "movies:"

# session.info key holding the cache to clear again after commit
_PENDING_PAGE_DROP = "movie_api.pending_page_drop"


# ── Private helpers ────────────────────────────────────────────────────────

def _page_cache_key(page: int, page_size: int) -> str:
    return f"{MOVIES_CACHE_PREFIX}{page}:{page_size}"


def _drop_pages(cache: MemoryCache) -> None:
    dropped = cache.remove_prefix(MOVIES_CACHE_PREFIX)
    logger.info("invalidated %d cached movie page(s)", dropped)


def _invalidate_pages(cache: MemoryCache, session: Session) -> None:
    _drop_pages(cache)
    session.info[_PENDING_PAGE_DROP] = cache


@event.listens_for(Session, "after_commit")
def _drop_pages_after_commit(session: Session) -> None:
    cache = session.info.pop(_PENDING_PAGE_DROP, None)
    if cache is not None:
        _drop_pages(cache)


@event.listens_for(Session, "after_soft_rollback")
def _forget_pending_drop(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_PAGE_DROP, None)


def _get_movie_or_404(movie_id: uuid.UUID, session: Session) -> Movie:
    """Returns the Movie or raises MovieNotFoundError (404)."""
    movie = session.get(Movie, movie_id)
    if movie is None:
        raise MovieNotFoundError(movie_id)
    return movie


def _build_movie_dict(movie: Movie) -> dict:
    """Serialises a Movie to its wire view. No business logic."""
    return {
        "id": str(movie.id),
        "title": movie.title,
        "genre": movie.genre,
        "releaseDate": as_utc(movie.release_date).isoformat(),
        "rating": movie.rating,
    }


# ── Public service functions ───────────────────────────────────────────────

def create_movie(data: dict, session: Session, cache: MemoryCache) -> dict:
    """
    Validates and persists a new movie.

    Args:
        data: loaded CreateMovieSchema dict (title, genre, release_date, rating).

    Raises:
      MovieValidationError (400) — blank title/genre or rating outside [0, 10].

    Returns: the created movie view.
    """
    logger.debug("creating movie with title: %s", data.get("title"))

    movie = Movie.create(
        title=data.get("title"),
        genre=data.get("genre"),
        release_date=data.get("release_date"),
        rating=data.get("rating"),
    )

    _invalidate_pages(cache, session)
    session.add(movie)
    session.flush()

    logger.info("created movie %s", movie.id)
    return _build_movie_dict(movie)


def get_movie(movie_id: uuid.UUID, session: Session) -> dict:
    """
    Raises:
      MovieNotFoundError (404) — no row with this id.
    """
    return _build_movie_dict(_get_movie_or_404(movie_id, session))


def list_movies(
        page: int,
        page_size: int,
        session: Session,
        cache: MemoryCache,
) -> dict:
    """
    Returns one page of movies ordered by title, then id.

    The id tie-break keeps pagination stable when titles repeat.

    Returns: {"items", "totalCount", "page", "pageSize", "totalPages"}
    """
    cache_key = _page_cache_key(page, page_size)
    logger.info("fetching data for key: %s from cache", cache_key)

    page_result = cache.get(cache_key)
    if page_result is not None:
        logger.info("cache hit for key: %s", cache_key)
        return page_result

    logger.info("cache miss. fetching data for key: %s from database", cache_key)

    total_count = session.execute(
        select(func.count()).select_from(Movie)
    ).scalar_one()

    stmt = (
        select(Movie)
        .order_by(Movie.title.asc(), Movie.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    movies = session.execute(stmt).scalars().all()

    page_result = {
        "items": [_build_movie_dict(m) for m in movies],
        "totalCount": total_count,
        "page": page,
        "pageSize": page_size,
        "totalPages": math.ceil(total_count / page_size),
    }

    logger.info("setting data for key: %s to cache", cache_key)
    cache.set(cache_key, page_result)
    return page_result


def update_movie(
        movie_id: uuid.UUID,
        data: dict,
        session: Session,
        cache: MemoryCache,
) -> None:
    """
    Partial update: keys that are absent (or None) in `data` keep the
    movie's current value.

    Raises:
      MovieNotFoundError (404)   — no row with this id.
      MovieValidationError (400) — the merged values are invalid; the movie
                                   is left unchanged.
    """
    movie = _get_movie_or_404(movie_id, session)

    def _pick(key: str, current):
        value = data.get(key)
        return current if value is None else value

    new_title = _pick("title", movie.title)
    new_genre = _pick("genre", movie.genre)
    new_release_date = _pick("release_date", movie.release_date)
    new_rating = _pick("rating", movie.rating)

    _invalidate_pages(cache, session)
    movie.update(new_title, new_genre, new_release_date, new_rating)
    session.flush()

    logger.info("updated movie %s", movie_id)


def delete_movie(movie_id: uuid.UUID, session: Session, cache: MemoryCache) -> None:
    """
    Raises:
      MovieNotFoundError (404) — no row with this id.
    """
    movie = _get_movie_or_404(movie_id, session)

    _invalidate_pages(cache, session)
    session.delete(movie)
    session.flush()

    logger.info("deleted movie %s", movie_id)
