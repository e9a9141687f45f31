# src/commentum/api/v1/dependencies.py
"""Shared API dependencies for authentication and common functionality."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from commentum.core.security import IdentityClaims, Provider, TokenCodec
from commentum.core.settings import settings
from commentum.db.session import SessionLocal, get_db
from commentum.models import Comment, User
from commentum.services.authorization import Action, authorize_action
from commentum.services.media import MediaFetcher
from commentum.services.notifications import DiscordNotifier, Notification
from commentum.services.providers import ProviderVerifier
from commentum.services.restrictions import ActionKind, RestrictionDecision, check_can_act
from commentum.services.roles import Role, RoleResolver
from commentum.services.users import get_user_for
from commentum.services.votes import VoteService

# The body token takes precedence; the header is only a fallback.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


@lru_cache
def get_token_codec() -> TokenCodec:
    """Return the process-wide token codec built from settings."""
    return TokenCodec(settings.jwt_secret, settings.jwt_algorithm)


def get_vote_service() -> VoteService:
    return VoteService(max_attempts=settings.vote_max_attempts)


def get_notifier() -> DiscordNotifier:
    return DiscordNotifier.from_settings(settings)


def get_provider_verifier() -> ProviderVerifier:
    return ProviderVerifier.from_settings(settings)


def get_media_fetcher() -> MediaFetcher:
    return MediaFetcher.from_settings(settings)


def get_session_factory() -> Callable[[], Session]:
    """Return the factory background tasks use to open their own sessions."""
    return SessionLocal


TokenCodecDep = Annotated[TokenCodec, Depends(get_token_codec)]
VoteServiceDep = Annotated[VoteService, Depends(get_vote_service)]
NotifierDep = Annotated[DiscordNotifier, Depends(get_notifier)]
ProviderVerifierDep = Annotated[ProviderVerifier, Depends(get_provider_verifier)]
MediaFetcherDep = Annotated[MediaFetcher, Depends(get_media_fetcher)]
SessionFactoryDep = Annotated[Callable[[], Session], Depends(get_session_factory)]


@dataclass(frozen=True)
class Actor:
    """An authenticated caller with its live role and user record."""

    identity: IdentityClaims
    role: Role
    user: User | None

    @property
    def display_name(self) -> str:
        if self.user is not None:
            return self.user.username
        return self.identity.subject_id


def authenticate(
    token: str | None,
    credentials: HTTPAuthorizationCredentials | None,
    codec: TokenCodec,
) -> IdentityClaims:
    """Verify the envelope token (or the bearer header) and return its claims.

    Raises:
        HTTPException: 401 when no token is supplied or it does not verify.
    """
    raw = token or (credentials.credentials if credentials else None)
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    claims = codec.verify(raw)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return claims


def load_actor(db: Session, identity: IdentityClaims) -> Actor:
    """Resolve the live role and user record for ``identity``."""
    role = RoleResolver(db).resolve_role(identity.subject_id, identity.provider)
    return Actor(identity=identity, role=role, user=get_user_for(db, identity))


def authenticate_actor(
    db: Session,
    token: str | None,
    credentials: HTTPAuthorizationCredentials | None,
    codec: TokenCodec,
) -> Actor:
    return load_actor(db, authenticate(token, credentials, codec))


def require_action(
    actor: Actor,
    action: Action,
    *,
    target: IdentityClaims | None = None,
    detail: str = "Insufficient permissions",
) -> None:
    """Raise 403 unless ``actor`` may perform ``action`` on ``target``."""
    if not authorize_action(actor.role, action, actor=actor.identity, target=target):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_unrestricted(actor: Actor, kind: ActionKind) -> RestrictionDecision:
    """Raise 403 when a ban or mute blocks ``kind``; return the decision otherwise."""
    decision = check_can_act(actor.user, kind)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.message)
    return decision


def get_comment_or_404(db: Session, comment_id: int, *, include_deleted: bool = False) -> Comment:
    query = db.query(Comment).filter(Comment.id == comment_id)
    if not include_deleted:
        query = query.filter(Comment.deleted.is_(False))
    comment = query.first()
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return comment


def get_user_or_404(db: Session, identity: IdentityClaims) -> User:
    user = get_user_for(db, identity)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def comment_author(comment: Comment) -> IdentityClaims:
    return IdentityClaims(
        subject_id=comment.author_id, provider=Provider(comment.author_provider)
    )


def queue_notification(
    background_tasks: BackgroundTasks,
    notifier: DiscordNotifier,
    notification: Notification,
) -> None:
    """Send ``notification`` after the response has been returned."""
    background_tasks.add_task(notifier.send, notification)
