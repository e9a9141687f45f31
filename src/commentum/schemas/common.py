# src/commentum/schemas/common.py
"""Shared request envelope and response fragments."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from commentum.core.security import Provider
from commentum.services.threads import CommentSort


class ActionEnvelope(BaseModel):
    """Base for every POST body: an identity token plus operation fields.

    ``jwt_token`` is accepted as an alias of ``token``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("token", "jwt_token"),
        description="Identity token; falls back to the Authorization header",
    )


class MediaThreadEnvelope(ActionEnvelope):
    """Envelope naming one media thread: a media id within a provider.

    ``client_type`` is matched case-insensitively.
    """

    media_id: str = Field(..., min_length=1)
    client_type: Provider
    sort: CommentSort = CommentSort.NEWEST

    @field_validator("client_type", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        if isinstance(value, str):
            return value.lower()
        return value


class TargetUserEnvelope(ActionEnvelope):
    """Envelope addressing another user by provider identity."""

    target_user_id: str = Field(..., min_length=1)
    target_client_type: Provider


class CommentResponse(BaseModel):
    """Comment as returned by the API."""

    id: int
    author_id: str
    author_provider: str
    username: str
    user_role: str
    media_id: str
    media_type: str
    media_title: str
    media_year: int | None
    media_poster: str | None
    content: str
    parent_id: int | None
    tags: list[str] | None
    created_at: datetime
    updated_at: datetime
    deleted: bool
    pinned: bool
    locked: bool
    edited: bool
    edited_at: datetime | None
    edit_count: int
    reported: bool
    report_count: int
    upvotes: int
    downvotes: int
    vote_score: int

    model_config = ConfigDict(from_attributes=True)


class ModeratedCommentResponse(CommentResponse):
    """Comment with the moderation fields visible to moderators."""

    shadow_hidden: bool
    report_status: str | None
    moderated: bool
    moderated_at: datetime | None
    moderated_by: str | None
    moderation_action: str | None
    moderation_reason: str | None
    deleted_at: datetime | None
    deleted_by: str | None
    edit_history: list[dict[str, Any]]


class UserResponse(BaseModel):
    """Public view of a user record."""

    user_id: str
    provider: str
    username: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserStatusResponse(UserResponse):
    """User record including moderation state."""

    banned: bool
    shadow_banned: bool
    muted_until: datetime | None
    warning_count: int
    updated_at: datetime


def dump(model: type[BaseModel], obj: object) -> dict[str, Any]:
    """Serialize an ORM object through ``model`` into JSON-ready data."""
    return model.model_validate(obj).model_dump(mode="json")
