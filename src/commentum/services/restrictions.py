# src/commentum/services/restrictions.py
"""Ban, mute and shadow-ban checks applied before any write."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from commentum.core.settings import Settings
from commentum.db.time import as_utc, utcnow
from commentum.models.user import User


class ActionKind(str, Enum):
    """Kinds of writes a restriction can block."""

    COMMENT = "comment"
    VOTE = "vote"
    REPORT = "report"
    DELETE = "delete"


class RestrictionReason(str, Enum):
    BANNED = "banned"
    MUTED = "muted"


@dataclass(frozen=True)
class RestrictionDecision:
    """Whether a user may perform a write, and how it should be stored."""

    allowed: bool
    reason: RestrictionReason | None = None
    message: str | None = None
    shadow_banned: bool = False
    muted_until: datetime | None = None


ALLOWED = RestrictionDecision(allowed=True)


def check_can_act(
    user: User | None,
    action_kind: ActionKind,
    now: datetime | None = None,
) -> RestrictionDecision:
    """Return the restriction decision for ``user`` attempting ``action_kind``.

    A ban blocks every write kind. A mute in the future blocks comments only. A
    shadow ban never blocks; the decision carries the flag so the caller can hide
    what gets written. Role plays no part here.
    """
    if user is None:
        return ALLOWED

    if user.banned:
        return RestrictionDecision(
            allowed=False,
            reason=RestrictionReason.BANNED,
            message="User is banned",
        )

    muted_until = as_utc(user.muted_until)
    current = as_utc(now) if now is not None else utcnow()
    if (
        action_kind is ActionKind.COMMENT
        and muted_until is not None
        and muted_until > current
    ):
        return RestrictionDecision(
            allowed=False,
            reason=RestrictionReason.MUTED,
            message=f"User is temporarily muted until {muted_until.isoformat()}",
            muted_until=muted_until,
        )

    if user.shadow_banned:
        return RestrictionDecision(allowed=True, shadow_banned=True)
    return ALLOWED


def warning_escalations(count: int, settings: Settings) -> list[str]:
    """Return the configured warning thresholds that ``count`` has reached.

    Informational only: nothing is applied automatically.
    """
    return [
        name
        for name, threshold in settings.warning_thresholds.items()
        if count >= threshold
    ]
