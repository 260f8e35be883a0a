"""
models/user_role.py — Role enumeration and the user_roles table.

One row per (user, role). Role names are stored as their enum value.
"""

from __future__ import annotations

import enum

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from movie_api.app.extensions import db


class Role(str, enum.Enum):
    ADMINISTRATOR = "Administrator"
    MODERATOR     = "Moderator"
    USER          = "User"

    @classmethod
    def parse(cls, name: str | None) -> "Role | None":
        """Case-insensitive lookup by role name; None when nothing matches."""
        if not name:
            return None
        wanted = name.strip().lower()
        for role in cls:
            if role.value.lower() == wanted:
                return role
        return None


DEFAULT_ROLE = Role.USER


class UserRole(db.Model):
    __tablename__ = "user_roles"

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(String(50), nullable=False)

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="roles",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<UserRole user_id={self.user_id} role={self.role!r}>"
