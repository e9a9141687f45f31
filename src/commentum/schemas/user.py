# src/commentum/schemas/user.py
"""User lookup envelopes."""

from typing import Annotated, Literal

from pydantic import Field, RootModel

from commentum.core.security import Provider

from .common import ActionEnvelope


class MeRequest(ActionEnvelope):
    action: Literal["me"]


class _UserLookup(ActionEnvelope):
    target_user_id: str | None = Field(default=None, min_length=1)
    target_client_type: Provider | None = None


class UserInfoRequest(_UserLookup):
    action: Literal["get_user_info"]


class UserStatsRequest(_UserLookup):
    action: Literal["get_user_stats"]


class UserHistoryRequest(_UserLookup):
    action: Literal["get_user_history"]
    limit: int | None = Field(default=None, ge=1)


UserRequest = Annotated[
    MeRequest | UserInfoRequest | UserStatsRequest | UserHistoryRequest,
    Field(discriminator="action"),
]


class UserEnvelope(RootModel[UserRequest]):
    """User lookup body; the ``action`` tag picks the variant."""
