# src/commentum/schemas/__init__.py
"""Pydantic schemas for request and response validation."""

from .auth import LoginRequest
from .comment import (
    CommentEnvelope,
    CommentRequest,
    CreateCommentRequest,
    DeleteCommentRequest,
    EditCommentRequest,
    ListCommentsRequest,
    ModDeleteCommentRequest,
)
from .common import (
    ActionEnvelope,
    CommentResponse,
    MediaThreadEnvelope,
    ModeratedCommentResponse,
    TargetUserEnvelope,
    UserResponse,
    UserStatusResponse,
    dump,
)
from .media import MediaCommentsRequest, MediaResponse
from .moderation import ModerationEnvelope, ModerationRequest
from .report import ReportEnvelope, ReportRequest, ReportResponse
from .user import UserEnvelope, UserRequest
from .vote import MyVoteRequest, VoteRequest, VoteResponse

__all__ = [
    "ActionEnvelope",
    "CommentEnvelope",
    "CommentRequest",
    "CommentResponse",
    "CreateCommentRequest",
    "DeleteCommentRequest",
    "EditCommentRequest",
    "ListCommentsRequest",
    "LoginRequest",
    "MediaCommentsRequest",
    "MediaResponse",
    "MediaThreadEnvelope",
    "ModDeleteCommentRequest",
    "ModeratedCommentResponse",
    "ModerationEnvelope",
    "ModerationRequest",
    "MyVoteRequest",
    "ReportEnvelope",
    "ReportRequest",
    "ReportResponse",
    "TargetUserEnvelope",
    "UserEnvelope",
    "UserRequest",
    "UserResponse",
    "UserStatusResponse",
    "VoteRequest",
    "VoteResponse",
    "dump",
]
