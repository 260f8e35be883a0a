"""
models/refresh_token.py — RefreshToken table definition.

A refresh token belongs to exactly one user and is never deleted: revocation
is a tombstone (`revoked` timestamp). Derived state lives in the
is_expired / is_active properties.

FK policy: user_id ON DELETE CASCADE — token is owned by the user;
both are deleted together.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from movie_api.app.extensions import db
from movie_api.app.timeutils import as_utc, utcnow


class RefreshToken(db.Model):
    __tablename__ = "refresh_tokens"

    id: Mapped[int] = mapped_column(primary_key=True)

    # ON DELETE CASCADE — token is destroyed when its owning user is deleted.
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # base64 of 32 random bytes (44 chars). The UNIQUE constraint is the only
    # collision guard; 256 bits of entropy makes a clash negligible.
    token: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    expires: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # NULL while the token is usable; set once on rotation or explicit revoke.
    revoked: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="refresh_tokens",
    )

    # ── Derived state ──────────────────────────────────────────────────────

    @property
    def is_expired(self) -> bool:
        return utcnow() >= as_utc(self.expires)

    @property
    def is_active(self) -> bool:
        return self.revoked is None and not self.is_expired

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<RefreshToken id={self.id} "
            f"user_id={self.user_id} "
            f"active={self.is_active}>"
        )
