# src/commentum/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    comments_router,
    media_router,
    moderation_router,
    reports_router,
    users_router,
    votes_router,
)

__all__ = [
    "auth_router",
    "comments_router",
    "media_router",
    "votes_router",
    "reports_router",
    "moderation_router",
    "users_router",
]
