# src/commentum/api/v1/endpoints/media.py
"""Media thread listing for the Commentum API."""

import logging
import math
from typing import Any

from fastapi import APIRouter
from sqlalchemy.orm import Session

from commentum.api.v1.dependencies import (
    BearerDep,
    MediaFetcherDep,
    SessionDep,
    TokenCodecDep,
    authenticate_actor,
    require_action,
)
from commentum.api.v1.endpoints.comments import serialize_comment
from commentum.core.security import Provider
from commentum.core.settings import settings
from commentum.models import Media
from commentum.schemas import MediaCommentsRequest, MediaResponse, dump
from commentum.services.authorization import Action
from commentum.services.media import MediaFetcher, cache_media
from commentum.services.threads import order_thread, thread_query, thread_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["media"])


async def _media_record(
    db: Session, fetcher: MediaFetcher, provider: Provider, media_id: str
) -> Media | None:
    """Return the cached title, fetching and caching it on a miss."""
    media = db.get(Media, (media_id, provider.value))
    if media is not None:
        return media
    info = await fetcher.fetch(provider, media_id)
    if info is None:
        return None
    media = cache_media(db, provider, media_id, info)
    db.commit()
    logger.info("Cached media %s from %s", media_id, provider.value)
    return media


@router.post("/")
async def list_media_comments(
    request: MediaCommentsRequest,
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
    fetcher: MediaFetcherDep,
) -> dict[str, Any]:
    """Return one page of a media thread with its title, stats and paging.

    Works without a token. ``include_deleted`` needs a moderator. Stats cover
    every comment the caller can see on the thread, not only the returned page.
    """
    viewer = None
    if request.token or credentials or request.include_deleted:
        viewer = authenticate_actor(db, request.token, credentials, codec)
    if request.include_deleted:
        require_action(
            viewer,
            Action.VIEW_DELETED_COMMENTS,
            detail="Insufficient permissions. Moderator role required.",
        )

    query = thread_query(
        db,
        request.media_id,
        request.client_type,
        viewer=viewer.identity if viewer else None,
        viewer_role=viewer.role if viewer else None,
        include_deleted=request.include_deleted,
    )
    stats = thread_stats(query)
    limit = min(request.limit, settings.comment_page_limit)
    comments = (
        order_thread(query, request.sort)
        .offset((request.page - 1) * limit)
        .limit(limit)
        .all()
    )
    media = await _media_record(db, fetcher, request.client_type, request.media_id)

    viewer_role = viewer.role if viewer else None
    return {
        "success": True,
        "media": dump(MediaResponse, media) if media is not None else None,
        "comments": [serialize_comment(comment, viewer_role) for comment in comments],
        "stats": stats.as_dict(),
        "pagination": {
            "page": request.page,
            "limit": limit,
            "total": stats.comment_count,
            "total_pages": math.ceil(stats.comment_count / limit),
        },
    }
