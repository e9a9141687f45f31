# src/commentum/models/report.py
"""User reports against comments."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from commentum.db.session import Base
from commentum.db.time import utcnow

REPORT_REASONS = (
    "spam",
    "offensive",
    "harassment",
    "spoiler",
    "nsfw",
    "off_topic",
    "other",
)
REPORT_STATUSES = ("pending", "resolved", "dismissed")


class Report(Base):
    """A report filed by a user against a comment."""

    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint(
            "reason IN ('spam', 'offensive', 'harassment', 'spoiler', 'nsfw', "
            "'off_topic', 'other')",
            name="ck_reports_reason",
        ),
        CheckConstraint(
            "status IN ('pending', 'resolved', 'dismissed')", name="ck_reports_status"
        ),
        Index("ix_reports_status", "status"),
        Index("ix_reports_comment_id", "comment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False
    )
    reporter_id: Mapped[str] = mapped_column(Text, nullable=False)
    reporter_provider: Mapped[str] = mapped_column(Text, nullable=False)
    reporter_username: Mapped[str] = mapped_column(Text, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(Text, nullable=False, default="pending")
    reviewed_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
