# src/commentum/models/vote.py
"""Vote ledger rows."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from commentum.db.session import Base
from commentum.db.time import utcnow


class CommentVote(Base):
    """One voter's current vote on a comment.

    Removing a vote deletes the row, so the ledger only holds live votes.
    """

    __tablename__ = "comment_votes"
    __table_args__ = (
        CheckConstraint(
            "direction IN ('upvote', 'downvote')", name="ck_comment_votes_direction"
        ),
        Index("ix_comment_votes_comment_id", "comment_id"),
    )

    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
        primary_key=True,
    )
    voter_id: Mapped[str] = mapped_column(Text, primary_key=True)
    voter_provider: Mapped[str] = mapped_column(Text, primary_key=True)

    direction: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
