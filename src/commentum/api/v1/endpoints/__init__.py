# src/commentum/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .comments import router as comments_router
from .media import router as media_router
from .moderation import router as moderation_router
from .reports import router as reports_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "auth_router",
    "comments_router",
    "media_router",
    "votes_router",
    "reports_router",
    "moderation_router",
    "users_router",
]
