# src/commentum/models/comment.py
"""Comment threads attached to media."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from commentum.db.session import Base
from commentum.db.time import utcnow


class Comment(Base):
    """A comment, optionally replying to another comment on the same media."""

    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_media", "media_id", "media_type"),
        Index("ix_comments_author", "author_id", "author_provider"),
        Index("ix_comments_parent_id", "parent_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # The author's provider is also the namespace of media_id.
    author_id: Mapped[str] = mapped_column(Text, nullable=False)
    author_provider: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    # Role at creation time; display only.
    user_role: Mapped[str] = mapped_column(Text, nullable=False, default="user")

    media_id: Mapped[str] = mapped_column(Text, nullable=False)
    media_type: Mapped[str] = mapped_column(Text, nullable=False, default="other")
    media_title: Mapped[str] = mapped_column(Text, nullable=False, default="Loading...")
    media_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    media_poster: Mapped[str | None] = mapped_column(Text, nullable=True)

    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    deleted_by: Mapped[str | None] = mapped_column(Text)

    pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pinned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    pinned_by: Mapped[str | None] = mapped_column(Text)

    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    locked_by: Mapped[str | None] = mapped_column(Text)

    edited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    edit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    edit_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    # Set when the author was shadow banned at creation time.
    shadow_hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    reported: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    report_status: Mapped[str | None] = mapped_column(Text)

    moderated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    moderated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    moderated_by: Mapped[str | None] = mapped_column(Text)
    moderation_action: Mapped[str | None] = mapped_column(Text)
    moderation_reason: Mapped[str | None] = mapped_column(Text)

    # Cached aggregates of comment_votes; ledger_version bumps on every ledger write.
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vote_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ledger_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
