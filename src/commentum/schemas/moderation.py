# src/commentum/schemas/moderation.py
"""Moderation action envelopes."""

from typing import Annotated, Literal

from pydantic import Field, RootModel

from commentum.services.roles import Role

from .common import ActionEnvelope, TargetUserEnvelope


class PinCommentRequest(ActionEnvelope):
    action: Literal["pin_comment"]
    comment_id: int
    pin: bool = True
    reason: str | None = None


class LockThreadRequest(ActionEnvelope):
    action: Literal["lock_thread"]
    comment_id: int
    reason: str | None = None


class UnlockThreadRequest(ActionEnvelope):
    action: Literal["unlock_thread"]
    comment_id: int
    reason: str | None = None


class WarnUserRequest(TargetUserEnvelope):
    action: Literal["warn_user"]
    reason: str = Field(..., min_length=1)


class UnwarnUserRequest(TargetUserEnvelope):
    action: Literal["unwarn_user"]
    reason: str | None = None


class MuteUserRequest(TargetUserEnvelope):
    action: Literal["mute_user"]
    duration: float = Field(..., gt=0, description="Mute length in hours")
    reason: str | None = None


class UnmuteUserRequest(TargetUserEnvelope):
    action: Literal["unmute_user"]
    reason: str | None = None


class BanUserRequest(TargetUserEnvelope):
    action: Literal["ban_user"]
    reason: str = Field(..., min_length=1)
    shadow_ban: bool = False


class UnbanUserRequest(TargetUserEnvelope):
    action: Literal["unban_user"]
    reason: str | None = None


class ShadowBanUserRequest(TargetUserEnvelope):
    action: Literal["shadow_ban_user"]
    reason: str | None = None


class UnshadowBanUserRequest(TargetUserEnvelope):
    action: Literal["unshadow_ban_user"]
    reason: str | None = None


class PromoteUserRequest(TargetUserEnvelope):
    action: Literal["promote_user"]
    role: Role


class DemoteUserRequest(TargetUserEnvelope):
    action: Literal["demote_user"]
    role: Role = Role.USER


class ModerationQueueRequest(ActionEnvelope):
    action: Literal["get_queue"]
    limit: int | None = Field(default=None, ge=1)


class GetConfigRequest(ActionEnvelope):
    action: Literal["get_config"]


ModerationRequest = Annotated[
    PinCommentRequest
    | LockThreadRequest
    | UnlockThreadRequest
    | WarnUserRequest
    | UnwarnUserRequest
    | MuteUserRequest
    | UnmuteUserRequest
    | BanUserRequest
    | UnbanUserRequest
    | ShadowBanUserRequest
    | UnshadowBanUserRequest
    | PromoteUserRequest
    | DemoteUserRequest
    | ModerationQueueRequest
    | GetConfigRequest,
    Field(discriminator="action"),
]


class ModerationEnvelope(RootModel[ModerationRequest]):
    """Moderation request body; the ``action`` tag picks the variant."""
