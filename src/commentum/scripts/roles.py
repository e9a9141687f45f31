# src/commentum/scripts/roles.py
"""Operator tooling for user roles and identity tokens.

Bootstrap the first super admin, which no API call can do:

    python -m commentum.scripts.roles set-role 12345 anilist super_admin

Issue a token for a known user when debugging a client:

    python -m commentum.scripts.roles issue-token 12345 anilist
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Sequence

from sqlalchemy.orm import Session

from commentum.core.security import IdentityClaims, Provider, TokenCodec
from commentum.core.settings import settings
from commentum.db.session import SessionLocal
from commentum.services.roles import Role
from commentum.services.users import get_or_create_user, get_user, set_role

logger = logging.getLogger(__name__)


def set_user_role(
    db: Session,
    subject_id: str,
    provider: Provider,
    role: Role,
    username: str | None = None,
) -> Role:
    """Assign ``role`` to the user, creating the record if needed.

    Returns the previous role.
    """
    identity = IdentityClaims(subject_id=subject_id, provider=provider)
    user = get_or_create_user(db, identity, username)
    previous = set_role(user, role)
    db.commit()
    return previous


def issue_token(db: Session, codec: TokenCodec, subject_id: str, provider: Provider) -> str:
    """Return a token for an existing user.

    Raises:
        LookupError: If no such user exists.
    """
    if get_user(db, subject_id, provider) is None:
        raise LookupError(f"No user {provider.value}:{subject_id}")
    return codec.issue(subject_id, provider)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="commentum-roles", description=__doc__.splitlines()[0])
    subcommands = parser.add_subparsers(dest="command", required=True)

    set_role_cmd = subcommands.add_parser("set-role", help="Assign a role to a user")
    set_role_cmd.add_argument("user_id")
    set_role_cmd.add_argument("provider", type=Provider, choices=list(Provider))
    set_role_cmd.add_argument("role", type=Role, choices=list(Role))
    set_role_cmd.add_argument("--username", default=None)

    token_cmd = subcommands.add_parser("issue-token", help="Issue an identity token")
    token_cmd.add_argument("user_id")
    token_cmd.add_argument("provider", type=Provider, choices=list(Provider))
    return parser


def main(
    argv: Sequence[str] | None = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> int:
    args = build_parser().parse_args(argv)
    db = session_factory()
    try:
        if args.command == "set-role":
            previous = set_user_role(db, args.user_id, args.provider, args.role, args.username)
            print(f"{args.provider.value}:{args.user_id} {previous.value} -> {args.role.value}")
            return 0

        codec = TokenCodec(settings.jwt_secret, settings.jwt_algorithm)
        try:
            print(issue_token(db, codec, args.user_id, args.provider))
        except LookupError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    sys.exit(main())
