# src/commentum/schemas/comment.py
"""Comment action envelopes."""

from typing import Annotated, Literal

from pydantic import Field, RootModel

from .common import ActionEnvelope, MediaThreadEnvelope


class CreateCommentRequest(ActionEnvelope):
    action: Literal["create"]
    media_id: str = Field(..., min_length=1)
    content: str
    parent_id: int | None = None
    tag: str | None = Field(default=None, max_length=50)
    username: str | None = Field(default=None, description="Display name fallback")


class EditCommentRequest(ActionEnvelope):
    action: Literal["edit"]
    comment_id: int
    content: str


class DeleteCommentRequest(ActionEnvelope):
    action: Literal["delete"]
    comment_id: int


class ModDeleteCommentRequest(ActionEnvelope):
    action: Literal["mod_delete"]
    comment_id: int
    reason: str | None = None


class ListCommentsRequest(MediaThreadEnvelope):
    action: Literal["list"]
    parent_id: int | None = None
    limit: int = Field(default=50, ge=1)
    offset: int = Field(default=0, ge=0)


CommentRequest = Annotated[
    CreateCommentRequest
    | EditCommentRequest
    | DeleteCommentRequest
    | ModDeleteCommentRequest
    | ListCommentsRequest,
    Field(discriminator="action"),
]


class CommentEnvelope(RootModel[CommentRequest]):
    """Comment request body; the ``action`` tag picks the variant."""
