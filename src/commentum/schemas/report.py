# src/commentum/schemas/report.py
"""Report action envelopes."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel

from .common import ActionEnvelope

ReportReason = Literal[
    "spam", "offensive", "harassment", "spoiler", "nsfw", "off_topic", "other"
]


class CreateReportRequest(ActionEnvelope):
    action: Literal["create"]
    comment_id: int
    reason: ReportReason
    notes: str | None = Field(default=None, max_length=1000)


class ResolveReportRequest(ActionEnvelope):
    action: Literal["resolve"]
    report_id: int
    resolution: Literal["resolved", "dismissed"]
    review_notes: str | None = Field(default=None, max_length=1000)


class ReportQueueRequest(ActionEnvelope):
    action: Literal["get_queue"]
    status: Literal["pending", "resolved", "dismissed"] = "pending"
    limit: int = Field(default=50, ge=1)


ReportRequest = Annotated[
    CreateReportRequest | ResolveReportRequest | ReportQueueRequest,
    Field(discriminator="action"),
]


class ReportEnvelope(RootModel[ReportRequest]):
    """Report request body; the ``action`` tag picks the variant."""


class ReportResponse(BaseModel):
    id: int
    comment_id: int
    reporter_id: str
    reporter_provider: str
    reporter_username: str
    reason: str
    notes: str | None
    status: str
    reviewed_by: str | None
    reviewed_at: datetime | None
    review_notes: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
