# src/commentum/api/v1/endpoints/users.py
"""User lookup endpoints for the Commentum API."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, status
from sqlalchemy import case, desc, func
from sqlalchemy.orm import Session

from commentum.api.v1.dependencies import (
    Actor,
    BearerDep,
    SessionDep,
    TokenCodecDep,
    authenticate_actor,
    get_user_or_404,
    require_action,
)
from commentum.core.security import IdentityClaims
from commentum.core.settings import settings
from commentum.models import Comment, CommentVote, User
from commentum.schemas import (
    CommentResponse,
    ModeratedCommentResponse,
    UserEnvelope,
    UserStatusResponse,
    dump,
)
from commentum.schemas.user import MeRequest, UserHistoryRequest, UserInfoRequest, UserStatsRequest
from commentum.services.authorization import Action, authorize
from commentum.services.roles import Role

router = APIRouter(prefix="/users", tags=["users"])

_OTHERS_DETAIL = "Insufficient permissions. Moderator role required to view other users."


def _target(
    request: UserInfoRequest | UserStatsRequest | UserHistoryRequest,
    actor: Actor,
) -> IdentityClaims:
    if request.target_user_id is None:
        return actor.identity
    return IdentityClaims(
        subject_id=request.target_user_id,
        provider=request.target_client_type or actor.identity.provider,
    )


def comment_stats(db: Session, identity: IdentityClaims) -> dict[str, int]:
    """Aggregate comment and vote totals for ``identity``."""
    row = (
        db.query(
            func.count(Comment.id),
            func.coalesce(func.sum(case((Comment.deleted.is_(False), 1), else_=0)), 0),
            func.coalesce(func.sum(case((Comment.deleted.is_(True), 1), else_=0)), 0),
            func.coalesce(func.sum(Comment.upvotes), 0),
            func.coalesce(func.sum(Comment.downvotes), 0),
        )
        .filter(
            Comment.author_id == identity.subject_id,
            Comment.author_provider == identity.provider.value,
        )
        .one()
    )
    total, active, deleted, upvotes, downvotes = (int(value or 0) for value in row)
    votes_cast = (
        db.query(func.count())
        .select_from(CommentVote)
        .filter(
            CommentVote.voter_id == identity.subject_id,
            CommentVote.voter_provider == identity.provider.value,
        )
        .scalar()
        or 0
    )
    return {
        "total_comments": total,
        "active_comments": active,
        "deleted_comments": deleted,
        "total_upvotes": upvotes,
        "total_downvotes": downvotes,
        "net_score": upvotes - downvotes,
        "votes_cast": votes_cast,
    }


def _is_moderator(actor: Actor) -> bool:
    return authorize(actor.role, Role.MODERATOR)


def _user_view(user: User, actor: Actor) -> dict[str, Any]:
    """Serialize ``user``; a shadow ban is only visible to moderators."""
    data = dump(UserStatusResponse, user)
    if not _is_moderator(actor):
        data.pop("shadow_banned", None)
    return data


def _moderation_state(user: User, actor: Actor) -> dict[str, Any]:
    data = _user_view(user, actor)
    state = {
        "warnings": data["warning_count"],
        "banned": data["banned"],
        "muted_until": data["muted_until"],
    }
    if "shadow_banned" in data:
        state["shadow_banned"] = data["shadow_banned"]
    return state


@router.post("/")
async def handle_user_action(
    envelope: Annotated[UserEnvelope, Body()],
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
) -> dict[str, Any]:
    """Return information about the caller or, for moderators, another user."""
    request = envelope.root
    actor = authenticate_actor(db, request.token, credentials, codec)

    if isinstance(request, MeRequest):
        if actor.user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found in database",
            )
        stats = comment_stats(db, actor.identity)
        return {
            "success": True,
            "user": _user_view(actor.user, actor),
            "voting_stats": {
                "total_upvotes": stats["total_upvotes"],
                "total_downvotes": stats["total_downvotes"],
                "total_score": stats["net_score"],
                "total_comments": stats["total_comments"],
            },
        }

    target = _target(request, actor)

    if isinstance(request, UserInfoRequest):
        require_action(actor, Action.VIEW_USER_INFO, target=target, detail=_OTHERS_DETAIL)
        user = get_user_or_404(db, target)
        return {"success": True, "user": _user_view(user, actor)}

    if isinstance(request, UserStatsRequest):
        require_action(actor, Action.VIEW_USER_STATS, target=target, detail=_OTHERS_DETAIL)
        user = get_user_or_404(db, target)
        return {
            "success": True,
            "user_id": user.user_id,
            "client_type": user.provider,
            "stats": {**comment_stats(db, target), **_moderation_state(user, actor)},
        }

    require_action(actor, Action.VIEW_USER_HISTORY, target=target, detail=_OTHERS_DETAIL)
    user = get_user_or_404(db, target)
    limit = settings.history_limit
    if request.limit is not None:
        limit = min(limit, request.limit)
    comments = (
        db.query(Comment)
        .filter(
            Comment.author_id == user.user_id,
            Comment.author_provider == user.provider,
        )
        .order_by(desc(Comment.created_at), desc(Comment.id))
        .limit(limit)
        .all()
    )
    history_model = ModeratedCommentResponse if _is_moderator(actor) else CommentResponse
    return {
        "success": True,
        "user": _user_view(user, actor),
        "history": [dump(history_model, comment) for comment in comments],
        "count": len(comments),
    }
