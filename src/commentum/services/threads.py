# src/commentum/services/threads.py
"""Comment thread queries shared by the comment and media listings.

A thread is every comment on one media id within one provider's namespace;
AniList #21 and MyAnimeList #21 are different titles and never share comments.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy import and_, asc, case, desc, func, or_
from sqlalchemy.orm import Query, Session

from commentum.core.security import IdentityClaims, Provider
from commentum.models.comment import Comment
from commentum.services.authorization import authorize
from commentum.services.roles import Role


class CommentSort(str, Enum):
    """Orderings offered by the listings. Pinned comments always come first."""

    NEWEST = "newest"
    OLDEST = "oldest"
    TOP = "top"
    CONTROVERSIAL = "controversial"


# Votes on the losing side; a comment is controversial when both sides are large.
_minority_votes = case(
    (Comment.upvotes < Comment.downvotes, Comment.upvotes),
    else_=Comment.downvotes,
)

_SORT_ORDER = {
    CommentSort.NEWEST: (desc(Comment.created_at), desc(Comment.id)),
    CommentSort.OLDEST: (asc(Comment.created_at), asc(Comment.id)),
    CommentSort.TOP: (desc(Comment.vote_score), desc(Comment.created_at), desc(Comment.id)),
    CommentSort.CONTROVERSIAL: (
        desc(_minority_votes),
        desc(Comment.upvotes + Comment.downvotes),
        desc(Comment.created_at),
        desc(Comment.id),
    ),
}


@dataclass(frozen=True)
class ThreadStats:
    """Aggregates over every comment a listing matches, not just one page."""

    comment_count: int
    total_upvotes: int
    total_downvotes: int

    @property
    def net_score(self) -> int:
        return self.total_upvotes - self.total_downvotes

    def as_dict(self) -> dict[str, int]:
        return {
            "comment_count": self.comment_count,
            "total_upvotes": self.total_upvotes,
            "total_downvotes": self.total_downvotes,
            "net_score": self.net_score,
        }


def thread_query(
    db: Session,
    media_id: str,
    provider: Provider,
    *,
    viewer: IdentityClaims | None = None,
    viewer_role: Role | None = None,
    include_deleted: bool = False,
) -> Query[Comment]:
    """Return the comments on ``media_id`` under ``provider`` that ``viewer`` may see.

    Shadow-hidden comments are visible only to their author and to moderators.
    ``include_deleted`` is not checked here; callers gate it on role.
    """
    query = db.query(Comment).filter(
        Comment.media_id == media_id,
        Comment.author_provider == provider.value,
    )
    if not include_deleted:
        query = query.filter(Comment.deleted.is_(False))

    if viewer_role is not None and authorize(viewer_role, Role.MODERATOR):
        return query
    if viewer is None:
        return query.filter(Comment.shadow_hidden.is_(False))
    return query.filter(
        or_(
            Comment.shadow_hidden.is_(False),
            and_(
                Comment.author_id == viewer.subject_id,
                Comment.author_provider == viewer.provider.value,
            ),
        )
    )


def order_thread(query: Query[Comment], sort: CommentSort) -> Query[Comment]:
    return query.order_by(desc(Comment.pinned), *_SORT_ORDER[sort])


def thread_stats(query: Query[Comment]) -> ThreadStats:
    """Count ``query``'s comments and sum their votes."""
    count, upvotes, downvotes = query.with_entities(
        func.count(Comment.id),
        func.coalesce(func.sum(Comment.upvotes), 0),
        func.coalesce(func.sum(Comment.downvotes), 0),
    ).one()
    return ThreadStats(
        comment_count=int(count),
        total_upvotes=int(upvotes),
        total_downvotes=int(downvotes),
    )
