# src/commentum/api/v1/endpoints/reports.py
"""Report endpoints for the Commentum API."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Body, HTTPException, Response, status
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from commentum.api.v1.dependencies import (
    Actor,
    BearerDep,
    NotifierDep,
    SessionDep,
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
from commentum.models import Comment, Report
from commentum.schemas import ModeratedCommentResponse, ReportEnvelope, ReportResponse, dump
from commentum.schemas.report import CreateReportRequest, ReportQueueRequest, ResolveReportRequest
from commentum.services.authorization import Action
from commentum.services.notifications import Notification, NotificationType
from commentum.services.restrictions import ActionKind
from commentum.services.users import get_user_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


def _pending_count(db: Session, comment_id: int) -> int:
    return (
        db.query(func.count(Report.id))
        .filter(Report.comment_id == comment_id, Report.status == "pending")
        .scalar()
        or 0
    )


def _create(request: CreateReportRequest, actor: Actor, db: Session) -> tuple[Report, Comment]:
    require_action(actor, Action.REPORT_COMMENT)
    require_unrestricted(actor, ActionKind.REPORT)

    comment = get_comment_or_404(db, request.comment_id, include_deleted=True)
    if comment.deleted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot report deleted comment",
        )
    author = get_user_for(db, comment_author(comment))
    if author is not None and author.banned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already banned",
        )

    report = Report(
        comment_id=comment.id,
        reporter_id=actor.identity.subject_id,
        reporter_provider=actor.identity.provider.value,
        reporter_username=actor.display_name,
        reason=request.reason,
        notes=request.notes,
        status="pending",
    )
    db.add(report)
    comment.reported = True
    comment.report_count = (comment.report_count or 0) + 1
    comment.report_status = "pending"
    db.commit()
    db.refresh(report)
    db.refresh(comment)
    logger.info("Comment %s reported for %s", comment.id, request.reason)
    return report, comment


def _resolve(request: ResolveReportRequest, actor: Actor, db: Session) -> tuple[Report, Comment]:
    require_action(actor, Action.RESOLVE_REPORT)

    report = db.query(Report).filter(Report.id == request.report_id).first()
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    comment = get_comment_or_404(db, report.comment_id, include_deleted=True)

    report.status = request.resolution
    report.reviewed_by = actor.identity.subject_id
    report.reviewed_at = utcnow()
    report.review_notes = request.review_notes
    db.flush()

    comment.report_status = "pending" if _pending_count(db, comment.id) else request.resolution
    db.commit()
    db.refresh(report)
    db.refresh(comment)
    return report, comment


def _queue(request: ReportQueueRequest, actor: Actor, db: Session) -> list[Report]:
    require_action(actor, Action.VIEW_MODERATION_QUEUE)
    limit = min(request.limit, settings.moderation_queue_limit)
    return (
        db.query(Report)
        .filter(Report.status == request.status)
        .order_by(desc(Report.created_at), desc(Report.id))
        .limit(limit)
        .all()
    )


@router.post("/")
async def handle_report_action(
    envelope: Annotated[ReportEnvelope, Body()],
    response: Response,
    background_tasks: BackgroundTasks,
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
    notifier: NotifierDep,
) -> dict[str, Any]:
    """File, resolve or list reports."""
    request = envelope.root
    actor = authenticate_actor(db, request.token, credentials, codec)
    if not settings.reporting_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reporting is disabled",
        )

    if isinstance(request, CreateReportRequest):
        report, comment = _create(request, actor, db)
        queue_notification(
            background_tasks,
            notifier,
            Notification(
                type=NotificationType.COMMENT_REPORTED,
                username=actor.display_name,
                media_title=comment.media_title,
                content=comment.content,
                reason=report.reason,
            ),
        )
        response.status_code = status.HTTP_201_CREATED
        return {
            "success": True,
            "report": dump(ReportResponse, report),
            "reportCount": comment.report_count,
        }

    if isinstance(request, ResolveReportRequest):
        report, comment = _resolve(request, actor, db)
        queue_notification(
            background_tasks,
            notifier,
            Notification(
                type=NotificationType.REPORT_RESOLVED,
                username=comment.username,
                moderator=actor.display_name,
                moderator_role=actor.role.value,
                reason=report.review_notes,
                extra={"resolution": report.status},
            ),
        )
        return {
            "success": True,
            "report": dump(ReportResponse, report),
            "comment": dump(ModeratedCommentResponse, comment),
        }

    reports = _queue(request, actor, db)
    return {
        "success": True,
        "reports": [dump(ReportResponse, report) for report in reports],
        "count": len(reports),
    }
