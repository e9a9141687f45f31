# src/commentum/services/roles.py
"""Role definitions and live role resolution."""

from __future__ import annotations

import logging
from enum import Enum

from sqlalchemy.orm import Session

from commentum.core.security import Provider
from commentum.models.user import User

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Roles ordered from least to most privileged."""

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def rank(self) -> int:
        """Return the position of this role in the total order."""
        return ROLE_HIERARCHY[self]

    @classmethod
    def parse(cls, value: object) -> Role | None:
        """Return the role named by ``value`` or None when it is not a role."""
        if isinstance(value, Role):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


ROLE_HIERARCHY: dict[Role, int] = {
    Role.USER: 0,
    Role.MODERATOR: 1,
    Role.ADMIN: 2,
    Role.SUPER_ADMIN: 3,
}


class RoleResolver:
    """Resolve an identity to its current role from the users table.

    The token never carries a role, so every call reads the live record. A
    promotion or demotion takes effect on the very next request.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def resolve_role(self, subject_id: str, provider: Provider | str) -> Role:
        """Return the stored role, or ``Role.USER`` when there is none."""
        provider_value = Provider(provider).value
        stored = (
            self._db.query(User.role)
            .filter(User.user_id == subject_id, User.provider == provider_value)
            .scalar()
        )
        if stored is None:
            return Role.USER

        role = Role.parse(stored)
        if role is None:
            logger.warning(
                "Unrecognised role %r stored for %s:%s; treating as user",
                stored,
                provider_value,
                subject_id,
            )
            return Role.USER
        return role
