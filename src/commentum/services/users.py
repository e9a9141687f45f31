# src/commentum/services/users.py
"""User record management.

This is the only module that writes to the ``users`` table. Handlers look up or
create records here and apply moderation state changes through these helpers.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from commentum.core.security import IdentityClaims, Provider
from commentum.db.time import utcnow
from commentum.models.user import User
from commentum.services.roles import Role

logger = logging.getLogger(__name__)


def get_user(db: Session, subject_id: str, provider: Provider | str) -> User | None:
    """Return the user record for ``(subject_id, provider)`` if it exists."""
    return db.get(User, (subject_id, Provider(provider).value))


def get_user_for(db: Session, identity: IdentityClaims) -> User | None:
    return get_user(db, identity.subject_id, identity.provider)


def get_or_create_user(
    db: Session,
    identity: IdentityClaims,
    username: str | None = None,
) -> User:
    """Return the user record for ``identity``, creating it if missing.

    An existing record keeps its role and restrictions; only the username is
    refreshed when a new one is supplied. The caller commits.
    """
    user = get_user_for(db, identity)
    if user is None:
        user = User(
            user_id=identity.subject_id,
            provider=identity.provider.value,
            username=username or identity.subject_id,
            role=Role.USER.value,
            banned=False,
            shadow_banned=False,
            warning_count=0,
        )
        db.add(user)
        db.flush()
        logger.info("Created user record %s:%s", identity.provider.value, identity.subject_id)
    elif username and user.username != username:
        user.username = username
    return user


def add_warning(user: User) -> int:
    """Increment the warning counter and return the new value."""
    user.warning_count = (user.warning_count or 0) + 1
    return user.warning_count


def remove_warning(user: User) -> int:
    """Decrement the warning counter, never below zero."""
    user.warning_count = max(0, (user.warning_count or 0) - 1)
    return user.warning_count


def mute_user(user: User, duration_hours: float, now: datetime | None = None) -> datetime:
    """Mute ``user`` for ``duration_hours`` and return the expiry."""
    if duration_hours <= 0:
        raise ValueError("duration_hours must be positive")
    until = (now or utcnow()) + timedelta(hours=duration_hours)
    user.muted_until = until
    return until


def unmute_user(user: User) -> None:
    user.muted_until = None


def ban_user(user: User, *, shadow: bool = False) -> None:
    """Ban ``user``; ``shadow`` also hides their comments from other users."""
    user.banned = True
    user.shadow_banned = shadow


def unban_user(user: User) -> None:
    """Lift both the ban and the shadow ban."""
    user.banned = False
    user.shadow_banned = False


def shadow_ban_user(user: User) -> None:
    user.shadow_banned = True


def unshadow_ban_user(user: User) -> None:
    user.shadow_banned = False


def set_role(user: User, role: Role) -> Role:
    """Assign ``role`` to ``user`` and return the previous role."""
    previous = Role.parse(user.role) or Role.USER
    user.role = role.value
    logger.info(
        "Role of %s:%s changed from %s to %s",
        user.provider,
        user.user_id,
        previous.value,
        role.value,
    )
    return previous
