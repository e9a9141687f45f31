# src/commentum/services/authorization.py
"""Role-based authorization gate.

Every privileged action has a minimum role. Owner-scoped actions (editing or
deleting a comment, reading a user's stats, info or history) are checked at the
``user`` floor when the actor is the target and at ``moderator`` otherwise.
"""

from __future__ import annotations

from enum import Enum

from commentum.core.security import IdentityClaims
from commentum.services.roles import Role


class Action(str, Enum):
    """Operations subject to authorization."""

    CREATE_COMMENT = "create_comment"
    EDIT_COMMENT = "edit_comment"
    DELETE_COMMENT = "delete_comment"
    VOTE = "vote"
    REPORT_COMMENT = "report_comment"
    VIEW_USER_STATS = "view_user_stats"
    VIEW_USER_INFO = "view_user_info"
    VIEW_USER_HISTORY = "view_user_history"

    PIN_COMMENT = "pin_comment"
    LOCK_THREAD = "lock_thread"
    UNLOCK_THREAD = "unlock_thread"
    WARN_USER = "warn_user"
    UNWARN_USER = "unwarn_user"
    MUTE_USER = "mute_user"
    UNMUTE_USER = "unmute_user"
    MOD_DELETE_COMMENT = "mod_delete_comment"
    RESOLVE_REPORT = "resolve_report"
    VIEW_MODERATION_QUEUE = "view_moderation_queue"
    VIEW_DELETED_COMMENTS = "view_deleted_comments"

    BAN_USER = "ban_user"
    UNBAN_USER = "unban_user"
    SHADOW_BAN_USER = "shadow_ban_user"
    UNSHADOW_BAN_USER = "unshadow_ban_user"

    PROMOTE_USER = "promote_user"
    DEMOTE_USER = "demote_user"
    MANAGE_CONFIG = "manage_config"


ACTION_FLOORS: dict[Action, Role] = {
    Action.CREATE_COMMENT: Role.USER,
    Action.EDIT_COMMENT: Role.USER,
    Action.DELETE_COMMENT: Role.USER,
    Action.VOTE: Role.USER,
    Action.REPORT_COMMENT: Role.USER,
    Action.VIEW_USER_STATS: Role.USER,
    Action.VIEW_USER_INFO: Role.USER,
    Action.VIEW_USER_HISTORY: Role.USER,
    Action.PIN_COMMENT: Role.MODERATOR,
    Action.LOCK_THREAD: Role.MODERATOR,
    Action.UNLOCK_THREAD: Role.MODERATOR,
    Action.WARN_USER: Role.MODERATOR,
    Action.UNWARN_USER: Role.MODERATOR,
    Action.MUTE_USER: Role.MODERATOR,
    Action.UNMUTE_USER: Role.MODERATOR,
    Action.MOD_DELETE_COMMENT: Role.MODERATOR,
    Action.RESOLVE_REPORT: Role.MODERATOR,
    Action.VIEW_MODERATION_QUEUE: Role.MODERATOR,
    Action.VIEW_DELETED_COMMENTS: Role.MODERATOR,
    Action.BAN_USER: Role.ADMIN,
    Action.UNBAN_USER: Role.ADMIN,
    Action.SHADOW_BAN_USER: Role.ADMIN,
    Action.UNSHADOW_BAN_USER: Role.ADMIN,
    Action.PROMOTE_USER: Role.SUPER_ADMIN,
    Action.DEMOTE_USER: Role.SUPER_ADMIN,
    Action.MANAGE_CONFIG: Role.SUPER_ADMIN,
}

OWNER_SCOPED_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.EDIT_COMMENT,
        Action.DELETE_COMMENT,
        Action.VIEW_USER_STATS,
        Action.VIEW_USER_INFO,
        Action.VIEW_USER_HISTORY,
    }
)

OTHERS_FLOOR = Role.MODERATOR


def authorize(actor_role: Role, min_required_role: Role) -> bool:
    """Return True if ``actor_role`` is at least ``min_required_role``."""
    return actor_role.rank >= min_required_role.rank


def required_role(
    action: Action,
    *,
    actor: IdentityClaims | None = None,
    target: IdentityClaims | None = None,
) -> Role:
    """Return the minimum role needed to perform ``action`` on ``target``."""
    floor = ACTION_FLOORS[action]
    if action in OWNER_SCOPED_ACTIONS and target is not None and target != actor:
        return OTHERS_FLOOR if OTHERS_FLOOR.rank > floor.rank else floor
    return floor


def authorize_action(
    actor_role: Role,
    action: Action,
    *,
    actor: IdentityClaims | None = None,
    target: IdentityClaims | None = None,
) -> bool:
    """Return True if ``actor_role`` may perform ``action``.

    Args:
        actor_role: Role resolved for the acting identity.
        action: The action being attempted.
        actor: Acting identity, used for the self-access exception.
        target: Identity owning the resource, if any.
    """
    return authorize(actor_role, required_role(action, actor=actor, target=target))
