# src/commentum/schemas/media.py
"""Media thread listing schemas."""

from pydantic import BaseModel, ConfigDict, Field

from .common import MediaThreadEnvelope


class MediaCommentsRequest(MediaThreadEnvelope):
    """Page through every comment on one media thread, replies included."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)
    include_deleted: bool = False


class MediaResponse(BaseModel):
    """Cached title metadata for a media thread."""

    media_id: str
    provider: str
    media_type: str
    title: str
    year: int | None
    poster: str | None

    model_config = ConfigDict(from_attributes=True)
