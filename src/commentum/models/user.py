# src/commentum/models/user.py
"""User records keyed by provider identity."""

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from commentum.db.session import Base
from commentum.db.time import utcnow


class User(Base):
    """A commenter namespaced by ``(user_id, provider)``.

    ``role`` is the only source of authorization. The row is created on login or
    on first comment and is never hard-deleted.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('user', 'moderator', 'admin', 'super_admin')",
            name="ck_users_role",
        ),
        CheckConstraint("warning_count >= 0", name="ck_users_warning_count"),
    )

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    provider: Mapped[str] = mapped_column(Text, primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(
        Text, nullable=False, default="user", server_default="user"
    )

    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    shadow_banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    muted_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    warning_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
