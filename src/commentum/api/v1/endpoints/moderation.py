# src/commentum/api/v1/endpoints/moderation.py
"""Moderation endpoints for the Commentum API."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Body, HTTPException, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from commentum.api.v1.dependencies import (
    Actor,
    BearerDep,
    NotifierDep,
    SessionDep,
    TokenCodecDep,
    authenticate_actor,
    get_comment_or_404,
    get_user_or_404,
    queue_notification,
    require_action,
)
from commentum.core.security import IdentityClaims, Provider
from commentum.core.settings import settings
from commentum.db.time import utcnow
from commentum.models import Comment, User
from commentum.schemas import (
    ModeratedCommentResponse,
    ModerationEnvelope,
    TargetUserEnvelope,
    UserStatusResponse,
    dump,
)
from commentum.schemas.moderation import (
    BanUserRequest,
    DemoteUserRequest,
    GetConfigRequest,
    LockThreadRequest,
    ModerationQueueRequest,
    MuteUserRequest,
    PinCommentRequest,
    PromoteUserRequest,
    ShadowBanUserRequest,
    UnbanUserRequest,
    UnlockThreadRequest,
    UnmuteUserRequest,
    UnshadowBanUserRequest,
    UnwarnUserRequest,
    WarnUserRequest,
)
from commentum.services import users as user_service
from commentum.services.authorization import ACTION_FLOORS, Action
from commentum.services.notifications import Notification, NotificationType
from commentum.services.restrictions import warning_escalations
from commentum.services.roles import Role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moderation", tags=["moderation"])

_ACTIONS: dict[type, Action] = {
    PinCommentRequest: Action.PIN_COMMENT,
    LockThreadRequest: Action.LOCK_THREAD,
    UnlockThreadRequest: Action.UNLOCK_THREAD,
    WarnUserRequest: Action.WARN_USER,
    UnwarnUserRequest: Action.UNWARN_USER,
    MuteUserRequest: Action.MUTE_USER,
    UnmuteUserRequest: Action.UNMUTE_USER,
    BanUserRequest: Action.BAN_USER,
    UnbanUserRequest: Action.UNBAN_USER,
    ShadowBanUserRequest: Action.SHADOW_BAN_USER,
    UnshadowBanUserRequest: Action.UNSHADOW_BAN_USER,
    PromoteUserRequest: Action.PROMOTE_USER,
    DemoteUserRequest: Action.DEMOTE_USER,
    ModerationQueueRequest: Action.VIEW_MODERATION_QUEUE,
    GetConfigRequest: Action.MANAGE_CONFIG,
}

_REQUIRED_ROLE_MESSAGES: dict[Role, str] = {
    Role.MODERATOR: "Insufficient permissions. Moderator role required.",
    Role.ADMIN: "Insufficient permissions. Admin role required.",
    Role.SUPER_ADMIN: "Insufficient permissions. Super admin role required.",
}


def _moderator_info(actor: Actor) -> dict[str, str]:
    return {
        "id": actor.identity.subject_id,
        "username": actor.display_name,
        "role": actor.role.value,
    }


def _ban_reason(request: BanUserRequest) -> str:
    if request.shadow_ban:
        return f"Shadow banned. {request.reason}"
    return request.reason


def _target(request: TargetUserEnvelope) -> IdentityClaims:
    return IdentityClaims(subject_id=request.target_user_id, provider=request.target_client_type)


def _mark_moderated(comment: Comment, actor: Actor, action: str, reason: str | None) -> None:
    comment.moderated = True
    comment.moderated_at = utcnow()
    comment.moderated_by = actor.identity.subject_id
    comment.moderation_action = action
    comment.moderation_reason = reason or ""


def _pin(request: PinCommentRequest, actor: Actor, db: Session) -> Comment:
    comment = get_comment_or_404(db, request.comment_id)
    comment.pinned = request.pin
    if request.pin:
        comment.pinned_at = utcnow()
        comment.pinned_by = actor.identity.subject_id
        _mark_moderated(comment, actor, "pin_comment", request.reason)
    else:
        comment.pinned_at = None
        comment.pinned_by = None
    return comment


def _set_lock(
    request: LockThreadRequest | UnlockThreadRequest,
    actor: Actor,
    db: Session,
    *,
    locked: bool,
) -> Comment:
    comment = get_comment_or_404(db, request.comment_id)
    comment.locked = locked
    comment.locked_at = utcnow() if locked else None
    comment.locked_by = actor.identity.subject_id if locked else None
    _mark_moderated(comment, actor, request.action, request.reason)
    return comment


def _change_role(
    request: PromoteUserRequest | DemoteUserRequest,
    actor: Actor,
    target: User,
) -> Role:
    target_identity = IdentityClaims(
        subject_id=target.user_id, provider=Provider(target.provider)
    )
    if target_identity == actor.identity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own role",
        )
    current = Role.parse(target.role) or Role.USER
    promoting = isinstance(request, PromoteUserRequest)
    if promoting and request.role.rank <= current.rank:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User already has role {current.value} or higher",
        )
    if not promoting and request.role.rank >= current.rank:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"User already has role {current.value} or lower",
        )
    return user_service.set_role(target, request.role)


def _queue(request: ModerationQueueRequest, db: Session) -> list[Comment]:
    limit = settings.moderation_queue_limit
    if request.limit is not None:
        limit = min(limit, request.limit)
    return (
        db.query(Comment)
        .filter(Comment.reported.is_(True), Comment.report_status == "pending")
        .order_by(desc(Comment.created_at), desc(Comment.id))
        .limit(limit)
        .all()
    )


@router.post("/")
async def handle_moderation_action(
    envelope: Annotated[ModerationEnvelope, Body()],
    background_tasks: BackgroundTasks,
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
    notifier: NotifierDep,
) -> dict[str, Any]:
    """Apply a moderation action selected by ``action``.

    The role floor of the action is checked before any comment or user lookup,
    so an under-privileged caller gets 403 whether or not the target exists.
    """
    request = envelope.root
    actor = authenticate_actor(db, request.token, credentials, codec)
    action = _ACTIONS[type(request)]
    require_action(
        actor,
        action,
        detail=_REQUIRED_ROLE_MESSAGES.get(ACTION_FLOORS[action], "Insufficient permissions"),
    )

    if isinstance(request, GetConfigRequest):
        return {"success": True, "config": settings.public_config()}

    if isinstance(request, ModerationQueueRequest):
        queue = _queue(request, db)
        return {
            "success": True,
            "queue": [dump(ModeratedCommentResponse, comment) for comment in queue],
            "count": len(queue),
        }

    if isinstance(request, PinCommentRequest | LockThreadRequest | UnlockThreadRequest):
        if isinstance(request, PinCommentRequest):
            comment = _pin(request, actor, db)
        else:
            comment = _set_lock(
                request, actor, db, locked=isinstance(request, LockThreadRequest)
            )
        db.commit()
        db.refresh(comment)
        logger.info(
            "%s applied to comment %s by %s",
            request.action,
            comment.id,
            actor.identity.subject_id,
        )
        return {
            "success": True,
            "comment": dump(ModeratedCommentResponse, comment),
            "moderator": _moderator_info(actor),
        }

    target = get_user_or_404(db, _target(request))
    notification: Notification | None = None
    extra: dict[str, Any] = {}

    if isinstance(request, WarnUserRequest):
        count = user_service.add_warning(target)
        extra = {
            "warningCount": count,
            "escalations": warning_escalations(count, settings),
        }
        notification = Notification(
            type=NotificationType.USER_WARNED,
            username=target.username,
            moderator=actor.display_name,
            reason=request.reason,
            extra={"warning_count": count},
        )
    elif isinstance(request, UnwarnUserRequest):
        extra = {"warningCount": user_service.remove_warning(target)}
    elif isinstance(request, MuteUserRequest):
        until = user_service.mute_user(target, request.duration)
        extra = {"mutedUntil": until.isoformat()}
        notification = Notification(
            type=NotificationType.USER_MUTED,
            username=target.username,
            moderator=actor.display_name,
            reason=request.reason,
            extra={"muted_until": until.isoformat()},
        )
    elif isinstance(request, UnmuteUserRequest):
        user_service.unmute_user(target)
    elif isinstance(request, BanUserRequest):
        user_service.ban_user(target, shadow=request.shadow_ban)
        notification = Notification(
            type=NotificationType.USER_BANNED,
            username=target.username,
            moderator=actor.display_name,
            reason=_ban_reason(request),
        )
    elif isinstance(request, UnbanUserRequest):
        user_service.unban_user(target)
        notification = Notification(
            type=NotificationType.USER_UNBANNED,
            username=target.username,
            moderator=actor.display_name,
            reason=request.reason,
        )
    elif isinstance(request, ShadowBanUserRequest):
        user_service.shadow_ban_user(target)
    elif isinstance(request, UnshadowBanUserRequest):
        user_service.unshadow_ban_user(target)
    else:
        previous = _change_role(request, actor, target)
        extra = {"previousRole": previous.value}
        notification = Notification(
            type=NotificationType.ROLE_CHANGED,
            username=target.username,
            moderator=actor.display_name,
            extra={"previous_role": previous.value, "new_role": request.role.value},
        )

    db.commit()
    db.refresh(target)
    logger.info(
        "%s applied to %s:%s by %s",
        request.action,
        target.provider,
        target.user_id,
        actor.identity.subject_id,
    )
    if notification is not None:
        queue_notification(background_tasks, notifier, notification)

    return {
        "success": True,
        "user": dump(UserStatusResponse, target),
        "moderator": _moderator_info(actor),
        **extra,
    }
