"""
models/movie.py — Movie table definition and entity rules.

Movie rows are only built through Movie.create() and only changed through
movie.update(); both validate every argument before any attribute is touched,
so a Movie is never observable in a partially-invalid state.

Release dates are converted to UTC before assignment: SQLite keeps only the
wall-clock part of an aware datetime.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from movie_api.app.errors import MovieValidationError
from movie_api.app.extensions import db
from movie_api.app.timeutils import as_utc, utcnow

MIN_RATING = 0.0
MAX_RATING = 10.0
TITLE_MAX_LENGTH = 200
GENRE_MAX_LENGTH = 100


class Movie(db.Model):
    __tablename__ = "movies"

    __table_args__ = (
        CheckConstraint(
            "rating >= 0 AND rating <= 10",
            name="ck_movies_rating_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False, index=True)

    genre: Mapped[str] = mapped_column(String(GENRE_MAX_LENGTH), nullable=False)

    release_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    rating: Mapped[float] = mapped_column(Float, nullable=False)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # ── Factory / mutation ─────────────────────────────────────────────────

    @classmethod
    def create(
            cls,
            title: str,
            genre: str,
            release_date: datetime,
            rating: float,
    ) -> "Movie":
        _validate_inputs(title, genre, release_date, rating)
        now = utcnow()
        return cls(
            id=uuid.uuid4(),
            title=title,
            genre=genre,
            release_date=as_utc(release_date),
            rating=rating,
            created=now,
            last_modified=now,
        )

    def update(
            self,
            title: str,
            genre: str,
            release_date: datetime,
            rating: float,
    ) -> None:
        _validate_inputs(title, genre, release_date, rating)
        self.title = title
        self.genre = genre
        self.release_date = as_utc(release_date)
        self.rating = rating
        self.last_modified = utcnow()

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Movie id={self.id} title={self.title!r}>"


def _validate_inputs(
        title: str | None,
        genre: str | None,
        release_date: datetime | None,
        rating: float | None,
) -> None:
    if title is None or not str(title).strip():
        raise MovieValidationError("Title cannot be null or whitespace.", field="title")
    if len(str(title)) > TITLE_MAX_LENGTH:
        raise MovieValidationError("Title must be at most 200 characters.", field="title")
    if genre is None or not str(genre).strip():
        raise MovieValidationError("Genre cannot be null or whitespace.", field="genre")
    if len(str(genre)) > GENRE_MAX_LENGTH:
        raise MovieValidationError("Genre must be at most 100 characters.", field="genre")
    if release_date is None:
        raise MovieValidationError("Release date is required.", field="releaseDate")
    if (
            rating is None
            or math.isnan(rating)
            or rating < MIN_RATING
            or rating > MAX_RATING
    ):
        raise MovieValidationError("Rating must be between 0 and 10.", field="rating")
