# src/commentum/schemas/vote.py
"""Vote-related schemas."""

from pydantic import BaseModel, Field

from commentum.services.votes import VoteKind

from .common import ActionEnvelope


class VoteRequest(ActionEnvelope):
    """Cast, switch or remove a vote on a comment."""

    comment_id: int
    vote_type: VoteKind


class MyVoteRequest(ActionEnvelope):
    comment_id: int


class VoteResponse(BaseModel):
    """Aggregates after a vote, plus the caller's resulting vote."""

    success: bool = True
    vote_score: int = Field(serialization_alias="voteScore")
    upvotes: int
    downvotes: int
    user_vote: str | None = Field(serialization_alias="userVote")
