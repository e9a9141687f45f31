# tests/test_settings.py
"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from commentum.core.settings import Settings


def test_missing_secret_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JWT_SECRET", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize("secret", ["", "   "])
def test_blank_secret_fails_fast(secret: str) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, JWT_SECRET=secret)


def test_defaults() -> None:
    config = Settings(_env_file=None, JWT_SECRET="s3cret")

    assert config.system_enabled is True
    assert config.voting_enabled is True
    assert config.reporting_enabled is True
    assert config.max_comment_length == 10_000
    assert config.max_nesting_level == 10
    assert config.allow_self_voting is True
    assert config.discord_notifications_enabled is False
    assert config.warning_thresholds == {"warn": 3, "mute": 5, "ban": 10}


def test_banned_keywords_from_comma_separated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BANNED_KEYWORDS", "spoilerbot, free money,,")

    config = Settings(_env_file=None)

    assert config.banned_keywords == ["spoilerbot", "free money"]


def test_feature_toggles_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VOTING_ENABLED", "false")
    monkeypatch.setenv("ALLOW_SELF_VOTING", "0")

    config = Settings(_env_file=None)

    assert config.voting_enabled is False
    assert config.allow_self_voting is False


def test_vote_attempts_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, JWT_SECRET="s3cret", VOTE_MAX_ATTEMPTS=0)


def test_public_config_omits_secrets() -> None:
    config = Settings(
        _env_file=None,
        JWT_SECRET="s3cret",
        DISCORD_WEBHOOK_URL="https://discord.example/hook",
    )

    public = config.public_config()

    assert "jwt_secret" not in public
    assert "discord_webhook_url" not in public
    assert public["warning_thresholds"] == config.warning_thresholds


def test_testing_database_override() -> None:
    config = Settings(
        _env_file=None,
        JWT_SECRET="s3cret",
        DATABASE_URL="postgresql+asyncpg://db/prod",
        TEST_DATABASE_URL="sqlite://",
        USE_TEST_DATABASE=True,
    )

    assert config.effective_database_url == "sqlite://"
    assert Settings(
        _env_file=None,
        JWT_SECRET="s3cret",
        DATABASE_URL="postgresql+asyncpg://db/prod",
    ).database_url_sync == "postgresql+psycopg://db/prod"
