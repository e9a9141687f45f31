# src/commentum/services/votes.py
"""Vote state machine and the atomic per-comment vote update.

Each (comment, voter) pair is in one of three states. A vote request moves it
along a fixed transition table; aggregates are always recounted from the
resulting ledger rather than adjusted by deltas.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import update
from sqlalchemy.orm import Session

from commentum.core.security import IdentityClaims, Provider
from commentum.models.comment import Comment
from commentum.models.vote import CommentVote

logger = logging.getLogger(__name__)


class VoteKind(str, Enum):
    """A vote request."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"
    REMOVE = "remove"


class VoteState(str, Enum):
    """The current vote of one voter on one comment."""

    NONE = "none"
    UPVOTED = "upvote"
    DOWNVOTED = "downvote"


_TRANSITIONS: dict[tuple[VoteState, VoteKind], VoteState] = {
    (VoteState.NONE, VoteKind.UPVOTE): VoteState.UPVOTED,
    (VoteState.NONE, VoteKind.DOWNVOTE): VoteState.DOWNVOTED,
    (VoteState.NONE, VoteKind.REMOVE): VoteState.NONE,
    (VoteState.UPVOTED, VoteKind.UPVOTE): VoteState.NONE,
    (VoteState.UPVOTED, VoteKind.DOWNVOTE): VoteState.DOWNVOTED,
    (VoteState.UPVOTED, VoteKind.REMOVE): VoteState.NONE,
    (VoteState.DOWNVOTED, VoteKind.UPVOTE): VoteState.UPVOTED,
    (VoteState.DOWNVOTED, VoteKind.DOWNVOTE): VoteState.NONE,
    (VoteState.DOWNVOTED, VoteKind.REMOVE): VoteState.NONE,
}

Ledger = Mapping[IdentityClaims, VoteState]


class VoteConflictError(RuntimeError):
    """Raised when a vote could not be applied within the allowed attempts."""


@dataclass(frozen=True)
class VoteOutcome:
    """Result of applying one vote request to a ledger."""

    ledger: dict[IdentityClaims, VoteState]
    previous: VoteState
    state: VoteState
    upvotes: int
    downvotes: int

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes

    @property
    def user_vote(self) -> str | None:
        """Return ``"upvote"``, ``"downvote"`` or None for the acting voter."""
        if self.state is VoteState.NONE:
            return None
        return self.state.value


def transition(current: VoteState, kind: VoteKind) -> VoteState:
    """Return the state reached from ``current`` by request ``kind``."""
    return _TRANSITIONS[(current, kind)]


def count_votes(ledger: Ledger) -> tuple[int, int]:
    """Return ``(upvotes, downvotes)`` held by ``ledger``."""
    upvotes = sum(1 for state in ledger.values() if state is VoteState.UPVOTED)
    downvotes = sum(1 for state in ledger.values() if state is VoteState.DOWNVOTED)
    return upvotes, downvotes


def apply_vote(ledger: Ledger, voter: IdentityClaims, kind: VoteKind) -> VoteOutcome:
    """Apply ``kind`` from ``voter`` to ``ledger`` without mutating it."""
    previous = ledger.get(voter, VoteState.NONE)
    state = transition(previous, kind)

    updated = dict(ledger)
    if state is VoteState.NONE:
        updated.pop(voter, None)
    else:
        updated[voter] = state

    upvotes, downvotes = count_votes(updated)
    return VoteOutcome(
        ledger=updated,
        previous=previous,
        state=state,
        upvotes=upvotes,
        downvotes=downvotes,
    )


class VoteService:
    """Apply votes with an optimistic version check on the comment row."""

    def __init__(self, max_attempts: int = 5) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def load_ledger(self, db: Session, comment_id: int) -> dict[IdentityClaims, VoteState]:
        """Return the current ledger of ``comment_id``."""
        rows = db.query(CommentVote).filter(CommentVote.comment_id == comment_id).all()
        return {
            IdentityClaims(
                subject_id=row.voter_id,
                provider=Provider(row.voter_provider),
            ): VoteState(row.direction)
            for row in rows
        }

    def current_vote(self, db: Session, comment_id: int, voter: IdentityClaims) -> VoteState:
        """Return ``voter``'s current state on ``comment_id``."""
        row = db.get(CommentVote, (comment_id, voter.subject_id, voter.provider.value))
        if row is None:
            return VoteState.NONE
        return VoteState(row.direction)

    def _read_state(
        self, db: Session, comment_id: int
    ) -> tuple[int, dict[IdentityClaims, VoteState]]:
        version = (
            db.query(Comment.ledger_version).filter(Comment.id == comment_id).scalar()
        )
        if version is None:
            raise LookupError(f"Comment {comment_id} not found")
        return version, self.load_ledger(db, comment_id)

    def _write_ledger_row(
        self, db: Session, comment_id: int, voter: IdentityClaims, state: VoteState
    ) -> None:
        key = (comment_id, voter.subject_id, voter.provider.value)
        row = db.get(CommentVote, key)
        if state is VoteState.NONE:
            if row is not None:
                db.delete(row)
            return
        if row is None:
            db.add(
                CommentVote(
                    comment_id=comment_id,
                    voter_id=voter.subject_id,
                    voter_provider=voter.provider.value,
                    direction=state.value,
                )
            )
        else:
            row.direction = state.value

    def cast_vote(
        self,
        db: Session,
        comment_id: int,
        voter: IdentityClaims,
        kind: VoteKind,
    ) -> VoteOutcome:
        """Apply ``kind`` from ``voter`` to ``comment_id`` and commit.

        The comment's aggregates are written with
        ``WHERE id = :id AND ledger_version = :v``; the voter's ledger row is only
        written when that update matched. A miss means another vote landed in
        between, so the whole read-compute-update is retried.

        Raises:
            LookupError: If the comment does not exist.
            VoteConflictError: If every attempt lost the race.
        """
        for attempt in range(1, self.max_attempts + 1):
            version, ledger = self._read_state(db, comment_id)
            outcome = apply_vote(ledger, voter, kind)

            result = db.execute(
                update(Comment)
                .where(Comment.id == comment_id, Comment.ledger_version == version)
                .values(
                    upvotes=outcome.upvotes,
                    downvotes=outcome.downvotes,
                    vote_score=outcome.score,
                    ledger_version=version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                self._write_ledger_row(db, comment_id, voter, outcome.state)
                db.commit()
                return outcome

            db.rollback()
            logger.info(
                "Vote on comment %s lost a version race (attempt %s/%s)",
                comment_id,
                attempt,
                self.max_attempts,
            )

        raise VoteConflictError(
            f"Could not apply vote on comment {comment_id} after {self.max_attempts} attempts"
        )
