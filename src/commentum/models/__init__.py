# src/commentum/models/__init__.py
"""Database models for the Commentum Stage backend."""

from .comment import Comment
from .media import Media
from .report import Report
from .user import User
from .vote import CommentVote

__all__ = [
    "Comment",
    "CommentVote",
    "Media",
    "Report",
    "User",
]
