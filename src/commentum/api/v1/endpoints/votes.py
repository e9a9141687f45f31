# src/commentum/api/v1/endpoints/votes.py
"""Vote-related endpoints for the Commentum API."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from commentum.api.v1.dependencies import (
    BearerDep,
    SessionDep,
    TokenCodecDep,
    VoteServiceDep,
    authenticate_actor,
    comment_author,
    get_comment_or_404,
    require_action,
    require_unrestricted,
)
from commentum.core.settings import settings
from commentum.schemas.vote import MyVoteRequest, VoteRequest, VoteResponse
from commentum.services.authorization import Action
from commentum.services.restrictions import ActionKind
from commentum.services.votes import VoteState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteResponse)
async def cast_vote(
    request: VoteRequest,
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
    votes: VoteServiceDep,
) -> VoteResponse:
    """Upvote, downvote or remove a vote on a comment.

    Repeating the current vote toggles it off. Aggregates in the response are
    recounted from the ledger after the change.

    Raises:
        HTTPException: 401 without a valid token, 503 when voting is disabled,
            403 for banned users or disallowed self-votes, 404 if the comment
            does not exist or was deleted.
    """
    actor = authenticate_actor(db, request.token, credentials, codec)
    if not settings.voting_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Voting is disabled",
        )
    require_action(actor, Action.VOTE)
    require_unrestricted(actor, ActionKind.VOTE)

    comment = get_comment_or_404(db, request.comment_id)
    if not settings.allow_self_voting and comment_author(comment) == actor.identity:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot vote on your own comment",
        )

    outcome = votes.cast_vote(db, comment.id, actor.identity, request.vote_type)
    logger.debug(
        "Vote %s on comment %s: %s -> %s",
        request.vote_type.value,
        comment.id,
        outcome.previous.value,
        outcome.state.value,
    )
    return VoteResponse(
        vote_score=outcome.score,
        upvotes=outcome.upvotes,
        downvotes=outcome.downvotes,
        user_vote=outcome.user_vote,
    )


@router.post("/mine")
async def my_vote(
    request: MyVoteRequest,
    db: SessionDep,
    codec: TokenCodecDep,
    credentials: BearerDep,
    votes: VoteServiceDep,
) -> dict[str, Any]:
    """Return the caller's current vote on a comment."""
    actor = authenticate_actor(db, request.token, credentials, codec)
    comment = get_comment_or_404(db, request.comment_id)
    state = votes.current_vote(db, comment.id, actor.identity)
    return {
        "success": True,
        "commentId": comment.id,
        "userVote": None if state is VoteState.NONE else state.value,
    }
