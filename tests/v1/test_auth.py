# tests/v1/test_auth.py
"""Tests for provider token login."""

from collections.abc import Iterator

import pytest
from fastapi import status

from commentum.api.v1.dependencies import get_provider_verifier
from commentum.core.security import IdentityClaims, Provider
from commentum.models import User
from commentum.services.providers import ProviderUser


class FakeVerifier:
    def __init__(self) -> None:
        self.accounts = {
            (Provider.ANILIST, "good-token"): ProviderUser("5114", "alice", "https://a/avatar.png"),
            (Provider.SIMKL, "good-token"): ProviderUser("9", "carol"),
        }

    async def verify(self, provider: Provider, access_token: str) -> ProviderUser | None:
        return self.accounts.get((provider, access_token))


@pytest.fixture(autouse=True)
def fake_verifier(app) -> Iterator[FakeVerifier]:
    verifier = FakeVerifier()
    app.dependency_overrides[get_provider_verifier] = lambda: verifier
    try:
        yield verifier
    finally:
        app.dependency_overrides.pop(get_provider_verifier, None)


def _login(client, token: str, client_type: str):
    return client.post("/api/v1/auth/", json={"token": token, "client_type": client_type})


def test_login_issues_identity_token(client, codec, db_session) -> None:
    response = _login(client, "good-token", "anilist")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    assert body["user"]["username"] == "alice"
    assert body["user"]["avatar"] == "https://a/avatar.png"
    assert codec.verify(body["token"]) == IdentityClaims("5114", Provider.ANILIST)
    assert db_session.get(User, ("5114", "anilist")) is not None


def test_login_keeps_existing_role(client, make_user) -> None:
    make_user("5114", role="moderator", username="old-name")

    body = _login(client, "good-token", "anilist").json()

    assert body["user"]["role"] == "moderator"
    assert body["user"]["username"] == "alice"


def test_client_type_is_case_insensitive(client) -> None:
    response = _login(client, "good-token", "SIMKL")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["provider"] == "simkl"


def test_rejected_provider_token(client) -> None:
    response = _login(client, "stolen", "anilist")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Invalid or expired token"}


def test_unknown_client_type(client) -> None:
    response = _login(client, "good-token", "kitsu")

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_issued_token_works_on_other_endpoints(client, api) -> None:
    token = _login(client, "good-token", "anilist").json()["token"]

    response = api("users", action="me", token=token)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["user_id"] == "5114"
