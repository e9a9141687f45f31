# src/commentum/api/v1/endpoints/comments.py
"""Comment endpoints for the Commentum API."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Body, HTTPException, Response, status
from sqlalchemy.orm import Session

from commentum.api.v1.dependencies import (
    Actor,
    BearerDep,
    MediaFetcherDep,
    NotifierDep,
    SessionDep,
    SessionFactoryDep,
    TokenCodecDep,
    authenticate_actor,
    comment_author,
    get_comment_or_404,
    queue_notification,
    require_action,
    require_unrestricted,
)
from commentum.core.settings import settings
from commentum.db.time import utcnow
from commentum.models import Comment
from commentum.schemas import (
    CommentEnvelope,
    CommentResponse,
    CreateCommentRequest,
    DeleteCommentRequest,
    EditCommentRequest,
    ListCommentsRequest,
    ModDeleteCommentRequest,
    ModeratedCommentResponse,
    dump,
)
from commentum.services.authorization import Action, authorize
from commentum.services.media import enrich_comment
from commentum.services.notifications import DiscordNotifier, Notification, NotificationType
from commentum.services.restrictions import ActionKind
from commentum.services.roles import Role
from commentum.services.threads import order_thread, thread_query
from commentum.services.users import get_or_create_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])


def _validate_content(content: str) -> None:
    """Enforce length limits and the banned keyword list."""
    limit = settings.max_comment_length
    if not content.strip() or len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Content must be between 1 and {limit} characters",
        )
    lowered = content.lower()
    if any(keyword.lower() in lowered for keyword in settings.banned_keywords if keyword):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Comment contains prohibited content",
        )


def comment_depth(db: Session, comment: Comment) -> int:
    """Return the number of ancestors above ``comment``."""
    depth = 0
    seen = {comment.id}
    parent_id = comment.parent_id
    while parent_id is not None and parent_id not in seen:
        seen.add(parent_id)
        depth += 1
        parent_id = db.query(Comment.parent_id).filter(Comment.id == parent_id).scalar()
    return depth


def serialize_comment(comment: Comment, viewer_role: Role | None = None) -> dict[str, Any]:
    if viewer_role is not None and authorize(viewer_role, Role.MODERATOR):
        return dump(ModeratedCommentResponse, comment)
    return dump(CommentResponse, comment)


def _notify(
    background_tasks: BackgroundTasks,
    notifier: DiscordNotifier,
    kind: NotificationType,
    comment: Comment,
    **kwargs: Any,
) -> None:
    queue_notification(
        background_tasks,
        notifier,
        Notification(
            type=kind,
            username=comment.username,
            media_title=comment.media_title,
            content=comment.content,
            **kwargs,
        ),
    )


def _create(
    request: CreateCommentRequest,
    actor: Actor,
    db: Session,
) -> Comment:
    if not settings.system_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment system is disabled",
        )
    require_action(actor, Action.CREATE_COMMENT)
    _validate_content(request.content)
    decision = require_unrestricted(actor, ActionKind.COMMENT)

    if request.parent_id is not None:
        parent = db.query(Comment).filter(
            Comment.id == request.parent_id,
            Comment.deleted.is_(False),
        ).first()
        if parent is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Parent comment not found",
            )
        if parent.locked:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Comment thread is locked",
            )
        if comment_depth(db, parent) >= settings.max_nesting_level:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Maximum nesting level exceeded",
            )

    user = get_or_create_user(db, actor.identity, request.username)
    comment = Comment(
        author_id=actor.identity.subject_id,
        author_provider=actor.identity.provider.value,
        username=user.username,
        user_role=actor.role.value,
        media_id=request.media_id,
        content=request.content,
        parent_id=request.parent_id,
        tags=[request.tag] if request.tag else None,
        edit_history=[],
        shadow_hidden=decision.shadow_banned,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    logger.info("Comment %s created on media %s", comment.id, comment.media_id)
    return comment


def _edit(request: EditCommentRequest, actor: Actor, db: Session) -> Comment:
    comment = get_comment_or_404(db, request.comment_id, include_deleted=True)
    require_action(
        actor,
        Action.EDIT_COMMENT,
        target=comment_author(comment),
        detail="You can only edit your own comments",
    )
    if comment.deleted or comment.locked:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot edit deleted or locked comments",
        )
    require_unrestricted(actor, ActionKind.COMMENT)
    _validate_content(request.content)

    now = utcnow()
    comment.edit_history = [
        *(comment.edit_history or []),
        {
            "oldContent": comment.content,
            "newContent": request.content,
            "editedAt": now.isoformat(),
            "editedBy": actor.identity.subject_id,
        },
    ]
    comment.content = request.content
    comment.edited = True
    comment.edited_at = now
    comment.edit_count = (comment.edit_count or 0) + 1
    db.commit()
    db.refresh(comment)
    return comment


def _delete(request: DeleteCommentRequest, actor: Actor, db: Session) -> Comment:
    comment = get_comment_or_404(db, request.comment_id)
    require_action(
        actor,
        Action.DELETE_COMMENT,
        target=comment_author(comment),
        detail="You can only delete your own comments",
    )
    require_unrestricted(actor, ActionKind.DELETE)
    comment.deleted = True
    comment.deleted_at = utcnow()
    comment.deleted_by = actor.identity.subject_id
    db.commit()
    db.refresh(comment)
    return comment


def _mod_delete(request: ModDeleteCommentRequest, actor: Actor, db: Session) -> Comment:
    require_action(actor, Action.MOD_DELETE_COMMENT)
    comment = get_comment_or_404(db, request.comment_id)
    now = utcnow()
    comment.deleted = True
    comment.deleted_at = now
    comment.deleted_by = actor.identity.subject_id
    comment.moderated = True
    comment.moderated_at = now
    comment.moderated_by = actor.identity.subject_id
    comment.moderation_action = "mod_delete"
    comment.moderation_reason = request.reason or "Moderator deletion"
    db.commit()
    db.refresh(comment)
    logger.info("Comment %s deleted by moderator %s", comment.id, actor.identity.subject_id)
    return comment


def _list(request: ListCommentsRequest, actor: Actor | None, db: Session) -> list[Comment]:
    query = thread_query(
        db,
        request.media_id,
        request.client_type,
        viewer=actor.identity if actor else None,
        viewer_role=actor.role if actor else None,
    )
    if request.parent_id is None:
        query = query.filter(Comment.parent_id.is_(None))
    else:
        query = query.filter(Comment.parent_id == request.parent_id)

    limit = min(request.limit, settings.comment_page_limit)
    return order_thread(query, request.sort).offset(request.offset).limit(limit).all()


@router.post("/")
async def handle_comment_action(
    envelope: Annotated[CommentEnvelope, Body()],
    response: Response,
    background_tasks: BackgroundTasks,
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
    notifier: NotifierDep,
    fetcher: MediaFetcherDep,
    session_factory: SessionFactoryDep,
) -> dict[str, Any]:
    """Create, edit, delete, moderator-delete or list comments.

    The ``action`` field selects the operation. Listing works without a token;
    every other action requires one.
    """
    request = envelope.root
    if isinstance(request, ListCommentsRequest):
        viewer = None
        if request.token or credentials:
            viewer = authenticate_actor(db, request.token, credentials, codec)
        comments = _list(request, viewer, db)
        viewer_role = viewer.role if viewer else None
        return {
            "success": True,
            "comments": [serialize_comment(comment, viewer_role) for comment in comments],
            "count": len(comments),
        }

    actor = authenticate_actor(db, request.token, credentials, codec)

    if isinstance(request, CreateCommentRequest):
        comment = _create(request, actor, db)
        background_tasks.add_task(
            enrich_comment,
            session_factory,
            fetcher,
            comment.id,
            actor.identity.provider,
            comment.media_id,
        )
        if not comment.shadow_hidden:
            _notify(background_tasks, notifier, NotificationType.COMMENT_CREATED, comment)
        response.status_code = status.HTTP_201_CREATED
        return {"success": True, "comment": serialize_comment(comment)}

    if isinstance(request, EditCommentRequest):
        comment = _edit(request, actor, db)
        _notify(background_tasks, notifier, NotificationType.COMMENT_UPDATED, comment)
        return {"success": True, "comment": serialize_comment(comment)}

    if isinstance(request, DeleteCommentRequest):
        comment = _delete(request, actor, db)
        _notify(background_tasks, notifier, NotificationType.COMMENT_DELETED, comment)
        return {"success": True, "comment": serialize_comment(comment)}

    comment = _mod_delete(request, actor, db)
    _notify(
        background_tasks,
        notifier,
        NotificationType.COMMENT_DELETED,
        comment,
        moderator=actor.display_name,
        moderator_role=actor.role.value,
        reason=comment.moderation_reason,
    )
    return {
        "success": True,
        "comment": serialize_comment(comment, actor.role),
        "moderator": {
            "id": actor.identity.subject_id,
            "username": actor.display_name,
            "role": actor.role.value,
        },
    }
