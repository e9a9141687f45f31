# tests/test_authorization.py
"""Tests for the role order and the per-action authorization gate."""

import pytest
from sqlalchemy.orm import Session

from commentum.core.security import IdentityClaims, Provider
from commentum.models import User
from commentum.services.authorization import (
    ACTION_FLOORS,
    OWNER_SCOPED_ACTIONS,
    Action,
    authorize,
    authorize_action,
    required_role,
)
from commentum.services.roles import ROLE_HIERARCHY, Role, RoleResolver

ROLES = [Role.USER, Role.MODERATOR, Role.ADMIN, Role.SUPER_ADMIN]

ALICE = IdentityClaims(subject_id="1", provider=Provider.ANILIST)
BOB = IdentityClaims(subject_id="2", provider=Provider.ANILIST)


@pytest.mark.parametrize("actor", ROLES)
@pytest.mark.parametrize("required", ROLES)
def test_authorize_matches_the_total_order(actor: Role, required: Role) -> None:
    assert authorize(actor, required) is (ROLES.index(actor) >= ROLES.index(required))


def test_hierarchy_ranks() -> None:
    assert [ROLE_HIERARCHY[role] for role in ROLES] == [0, 1, 2, 3]
    assert [role.rank for role in ROLES] == [0, 1, 2, 3]


def test_every_action_has_a_floor() -> None:
    assert set(ACTION_FLOORS) == set(Action)


@pytest.mark.parametrize(
    ("action", "floor"),
    [
        (Action.CREATE_COMMENT, Role.USER),
        (Action.VOTE, Role.USER),
        (Action.REPORT_COMMENT, Role.USER),
        (Action.PIN_COMMENT, Role.MODERATOR),
        (Action.LOCK_THREAD, Role.MODERATOR),
        (Action.WARN_USER, Role.MODERATOR),
        (Action.MUTE_USER, Role.MODERATOR),
        (Action.MOD_DELETE_COMMENT, Role.MODERATOR),
        (Action.RESOLVE_REPORT, Role.MODERATOR),
        (Action.VIEW_DELETED_COMMENTS, Role.MODERATOR),
        (Action.BAN_USER, Role.ADMIN),
        (Action.UNBAN_USER, Role.ADMIN),
        (Action.SHADOW_BAN_USER, Role.ADMIN),
        (Action.PROMOTE_USER, Role.SUPER_ADMIN),
        (Action.DEMOTE_USER, Role.SUPER_ADMIN),
        (Action.MANAGE_CONFIG, Role.SUPER_ADMIN),
    ],
)
def test_action_floors(action: Action, floor: Role) -> None:
    assert required_role(action) is floor
    for role in ROLES:
        assert authorize_action(role, action) is (role.rank >= floor.rank)


@pytest.mark.parametrize("action", sorted(OWNER_SCOPED_ACTIONS))
def test_owner_may_act_on_own_resources(action: Action) -> None:
    assert authorize_action(Role.USER, action, actor=ALICE, target=ALICE)


@pytest.mark.parametrize("action", sorted(OWNER_SCOPED_ACTIONS))
def test_others_resources_need_moderator(action: Action) -> None:
    assert not authorize_action(Role.USER, action, actor=ALICE, target=BOB)
    assert authorize_action(Role.MODERATOR, action, actor=ALICE, target=BOB)
    assert authorize_action(Role.SUPER_ADMIN, action, actor=ALICE, target=BOB)


def test_same_subject_on_another_provider_is_someone_else() -> None:
    elsewhere = IdentityClaims(subject_id=ALICE.subject_id, provider=Provider.SIMKL)

    assert not authorize_action(Role.USER, Action.EDIT_COMMENT, actor=ALICE, target=elsewhere)


@pytest.mark.parametrize("value", ["owner", "", None, "Admin", 3])
def test_parse_rejects_unknown_roles(value: object) -> None:
    assert Role.parse(value) is None


def test_parse_accepts_names_and_members() -> None:
    assert Role.parse("super_admin") is Role.SUPER_ADMIN
    assert Role.parse(Role.MODERATOR) is Role.MODERATOR


class TestRoleResolver:
    def test_missing_user_is_a_plain_user(self, db_session: Session) -> None:
        assert RoleResolver(db_session).resolve_role("404", Provider.ANILIST) is Role.USER

    def test_stored_role_is_returned(self, db_session: Session, moderator: User) -> None:
        resolver = RoleResolver(db_session)

        assert resolver.resolve_role(moderator.user_id, moderator.provider) is Role.MODERATOR

    def test_role_is_scoped_to_provider(self, db_session: Session, moderator: User) -> None:
        resolver = RoleResolver(db_session)

        assert resolver.resolve_role(moderator.user_id, Provider.SIMKL) is Role.USER

    def test_role_change_is_seen_immediately(self, db_session: Session, alice: User) -> None:
        resolver = RoleResolver(db_session)
        assert resolver.resolve_role(alice.user_id, alice.provider) is Role.USER

        alice.role = Role.ADMIN.value
        db_session.commit()

        assert resolver.resolve_role(alice.user_id, alice.provider) is Role.ADMIN
