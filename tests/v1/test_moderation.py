# tests/v1/test_moderation.py
"""Tests for moderation endpoints."""

import pytest
from fastapi import status

from commentum.core.settings import settings


def _target(user) -> dict[str, str]:
    return {"target_user_id": user.user_id, "target_client_type": user.provider}


class TestRoleGates:
    def test_moderator_cannot_ban(self, api, moderator, bob, token_for) -> None:
        response = api(
            "moderation", action="ban_user", token=token_for(moderator), reason="spam", **_target(bob)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"error": "Insufficient permissions. Admin role required."}

    def test_forbidden_before_not_found(self, api, moderator, token_for) -> None:
        response = api(
            "moderation",
            action="ban_user",
            token=token_for(moderator),
            reason="spam",
            target_user_id="nobody",
            target_client_type="anilist",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_user_cannot_warn(self, api, alice, bob, token_for) -> None:
        response = api(
            "moderation", action="warn_user", token=token_for(alice), reason="rude", **_target(bob)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"error": "Insufficient permissions. Moderator role required."}

    def test_admin_missing_target(self, api, admin, token_for) -> None:
        response = api(
            "moderation",
            action="ban_user",
            token=token_for(admin),
            reason="spam",
            target_user_id="nobody",
            target_client_type="anilist",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "User not found"}

    def test_unknown_provider(self, api, admin, token_for) -> None:
        response = api(
            "moderation",
            action="ban_user",
            token=token_for(admin),
            reason="spam",
            target_user_id="1",
            target_client_type="kitsu",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_requires_token(self, api) -> None:
        response = api("moderation", action="get_queue")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestCommentModeration:
    def test_pin_and_unpin(self, api, alice, moderator, make_comment, token_for) -> None:
        comment = make_comment(alice)

        pinned = api("moderation", action="pin_comment", token=token_for(moderator), comment_id=comment.id)
        unpinned = api(
            "moderation",
            action="pin_comment",
            token=token_for(moderator),
            comment_id=comment.id,
            pin=False,
        )

        assert pinned.status_code == status.HTTP_200_OK
        assert pinned.json()["comment"]["pinned"] is True
        assert pinned.json()["moderator"]["role"] == "moderator"
        assert unpinned.json()["comment"]["pinned"] is False

    def test_lock_blocks_replies_until_unlocked(
        self, api, alice, bob, moderator, make_comment, token_for
    ) -> None:
        comment = make_comment(alice)
        reply = {
            "action": "create",
            "token": token_for(bob),
            "media_id": "21",
            "content": "reply",
            "parent_id": comment.id,
        }

        locked = api("moderation", action="lock_thread", token=token_for(moderator), comment_id=comment.id)
        blocked = api("comments", **reply)
        api("moderation", action="unlock_thread", token=token_for(moderator), comment_id=comment.id)
        allowed = api("comments", **reply)

        assert locked.json()["comment"]["locked"] is True
        assert locked.json()["comment"]["moderation_action"] == "lock_thread"
        assert blocked.status_code == status.HTTP_403_FORBIDDEN
        assert allowed.status_code == status.HTTP_201_CREATED

    def test_pin_missing_comment(self, api, moderator, token_for) -> None:
        response = api("moderation", action="pin_comment", token=token_for(moderator), comment_id=404)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_moderation_queue(self, api, alice, bob, moderator, make_comment, token_for) -> None:
        reported = make_comment(alice)
        make_comment(alice, content="quiet")
        api("reports", action="create", token=token_for(bob), comment_id=reported.id, reason="spoiler")

        response = api("moderation", action="get_queue", token=token_for(moderator))

        assert response.status_code == status.HTTP_200_OK
        assert [c["id"] for c in response.json()["queue"]] == [reported.id]


class TestUserModeration:
    def test_warn_reports_escalations(self, api, moderator, bob, token_for, notifier, monkeypatch) -> None:
        monkeypatch.setattr(settings, "auto_warn_threshold", 2)
        body = {"action": "warn_user", "token": token_for(moderator), "reason": "rude", **_target(bob)}

        first = api("moderation", **body)
        second = api("moderation", **body)

        assert first.json()["warningCount"] == 1
        assert first.json()["escalations"] == []
        assert second.json()["warningCount"] == 2
        assert second.json()["escalations"] == ["warn"]
        assert second.json()["user"]["warning_count"] == 2
        assert bob.banned is False
        assert notifier.types() == ["user_warned", "user_warned"]

    def test_unwarn(self, api, moderator, make_user, token_for) -> None:
        target = make_user("50", warning_count=1)

        response = api("moderation", action="unwarn_user", token=token_for(moderator), **_target(target))

        assert response.json()["warningCount"] == 0

    def test_mute_blocks_comments_not_votes(
        self, api, alice, bob, moderator, make_comment, token_for
    ) -> None:
        comment = make_comment(alice)

        muted = api(
            "moderation", action="mute_user", token=token_for(moderator), duration=2, **_target(bob)
        )
        comment_attempt = api(
            "comments", action="create", token=token_for(bob), media_id="21", content="hi"
        )
        vote_attempt = api("votes", token=token_for(bob), comment_id=comment.id, vote_type="upvote")

        assert muted.status_code == status.HTTP_200_OK
        assert muted.json()["mutedUntil"]
        assert comment_attempt.status_code == status.HTTP_403_FORBIDDEN
        assert vote_attempt.status_code == status.HTTP_200_OK

    @pytest.mark.parametrize("duration", [0, -3])
    def test_mute_requires_positive_duration(self, api, moderator, bob, token_for, duration) -> None:
        response = api(
            "moderation", action="mute_user", token=token_for(moderator), duration=duration, **_target(bob)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unmute(self, api, moderator, bob, token_for) -> None:
        api("moderation", action="mute_user", token=token_for(moderator), duration=1, **_target(bob))

        response = api("moderation", action="unmute_user", token=token_for(moderator), **_target(bob))
        retry = api("comments", action="create", token=token_for(bob), media_id="21", content="back")

        assert response.json()["user"]["muted_until"] is None
        assert retry.status_code == status.HTTP_201_CREATED

    def test_ban_and_unban(self, api, admin, bob, token_for, notifier) -> None:
        banned = api("moderation", action="ban_user", token=token_for(admin), reason="spam", **_target(bob))
        blocked = api("comments", action="create", token=token_for(bob), media_id="21", content="hi")
        unbanned = api("moderation", action="unban_user", token=token_for(admin), **_target(bob))

        assert banned.json()["user"]["banned"] is True
        assert blocked.json() == {"error": "User is banned"}
        assert unbanned.json()["user"]["banned"] is False
        assert notifier.types() == ["user_banned", "user_unbanned"]

    def test_ban_with_shadow_flag_sets_both(self, api, admin, bob, token_for, notifier) -> None:
        response = api(
            "moderation",
            action="ban_user",
            token=token_for(admin),
            reason="spam",
            shadow_ban=True,
            **_target(bob),
        )

        user = response.json()["user"]
        assert user["banned"] is True
        assert user["shadow_banned"] is True
        assert notifier.sent[-1].reason == "Shadow banned. spam"

    def test_plain_ban_keeps_reason(self, api, admin, bob, token_for, notifier) -> None:
        api("moderation", action="ban_user", token=token_for(admin), reason="spam", **_target(bob))

        assert notifier.sent[-1].reason == "spam"

    def test_shadow_ban_and_lift(self, api, admin, bob, token_for) -> None:
        shadowed = api("moderation", action="shadow_ban_user", token=token_for(admin), **_target(bob))
        lifted = api("moderation", action="unshadow_ban_user", token=token_for(admin), **_target(bob))

        assert shadowed.json()["user"]["shadow_banned"] is True
        assert lifted.json()["user"]["shadow_banned"] is False

    def test_unban_lifts_shadow_ban(self, api, admin, make_user, token_for) -> None:
        target = make_user("51", banned=True, shadow_banned=True)

        response = api("moderation", action="unban_user", token=token_for(admin), **_target(target))

        assert response.json()["user"]["banned"] is False
        assert response.json()["user"]["shadow_banned"] is False


class TestRoleManagement:
    def test_promote_takes_effect_immediately(self, api, super_admin, alice, token_for) -> None:
        before = api("moderation", action="get_queue", token=token_for(alice))

        promoted = api(
            "moderation",
            action="promote_user",
            token=token_for(super_admin),
            role="moderator",
            **_target(alice),
        )
        after = api("moderation", action="get_queue", token=token_for(alice))

        assert before.status_code == status.HTTP_403_FORBIDDEN
        assert promoted.json()["previousRole"] == "user"
        assert promoted.json()["user"]["role"] == "moderator"
        assert after.status_code == status.HTTP_200_OK

    def test_demote(self, api, super_admin, admin, token_for, notifier) -> None:
        response = api("moderation", action="demote_user", token=token_for(super_admin), **_target(admin))

        assert response.json()["user"]["role"] == "user"
        assert response.json()["previousRole"] == "admin"
        assert notifier.sent[-1].extra == {"previous_role": "admin", "new_role": "user"}

    def test_promote_must_raise_the_role(self, api, super_admin, admin, token_for) -> None:
        response = api(
            "moderation",
            action="promote_user",
            token=token_for(super_admin),
            role="moderator",
            **_target(admin),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_demote_must_lower_the_role(self, api, super_admin, moderator, token_for) -> None:
        response = api(
            "moderation",
            action="demote_user",
            token=token_for(super_admin),
            role="admin",
            **_target(moderator),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cannot_change_own_role(self, api, super_admin, token_for) -> None:
        response = api(
            "moderation", action="demote_user", token=token_for(super_admin), **_target(super_admin)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "You cannot change your own role"}

    def test_admin_cannot_promote(self, api, admin, alice, token_for) -> None:
        response = api(
            "moderation", action="promote_user", token=token_for(admin), role="moderator", **_target(alice)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"error": "Insufficient permissions. Super admin role required."}

    def test_invalid_role(self, api, super_admin, alice, token_for) -> None:
        response = api(
            "moderation", action="promote_user", token=token_for(super_admin), role="owner", **_target(alice)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestConfig:
    def test_super_admin_reads_config(self, api, super_admin, token_for) -> None:
        response = api("moderation", action="get_config", token=token_for(super_admin))

        assert response.status_code == status.HTTP_200_OK
        config = response.json()["config"]
        assert config["voting_enabled"] is True
        assert "jwt_secret" not in config

    def test_admin_cannot_read_config(self, api, admin, token_for) -> None:
        response = api("moderation", action="get_config", token=token_for(admin))

        assert response.status_code == status.HTTP_403_FORBIDDEN
