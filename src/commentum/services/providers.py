# src/commentum/services/providers.py
"""Verification of third-party provider access tokens.

Login exchanges a provider access token for one of our identity tokens. The
provider is asked who the token belongs to; a token it rejects yields None.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from commentum.core.security import Provider
from commentum.core.settings import Settings

logger = logging.getLogger(__name__)

ANILIST_GRAPHQL_URL = "https://graphql.anilist.co"
MAL_ME_URL = "https://api.myanimelist.net/v2/users/@me"
SIMKL_SETTINGS_URL = "https://api.simkl.com/users/settings"

_ANILIST_VIEWER_QUERY = "query { Viewer { id name avatar { large } } }"


@dataclass(frozen=True)
class ProviderUser:
    """The account a provider access token belongs to."""

    provider_user_id: str
    username: str
    avatar_url: str | None = None


class ProviderVerifier:
    """Ask identity providers who an access token belongs to."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        mal_client_id: str | None = None,
        simkl_client_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout_seconds)
        self._mal_client_id = mal_client_id
        self._simkl_client_id = simkl_client_id
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderVerifier:
        return cls(
            timeout_seconds=settings.http_timeout_seconds,
            mal_client_id=settings.mal_client_id,
            simkl_client_id=settings.simkl_client_id,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def verify(self, provider: Provider, access_token: str) -> ProviderUser | None:
        """Return the account owning ``access_token`` or None if it is not valid."""
        try:
            if provider is Provider.ANILIST:
                return await self._verify_anilist(access_token)
            if provider is Provider.MYANIMELIST:
                return await self._verify_mal(access_token)
            if provider is Provider.SIMKL:
                return await self._verify_simkl(access_token)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Token verification against %s failed: %s", provider.value, exc)
            return None

        logger.info("No token verifier for provider %s", provider.value)
        return None

    async def _verify_anilist(self, access_token: str) -> ProviderUser | None:
        async with self._client() as client:
            response = await client.post(
                ANILIST_GRAPHQL_URL,
                json={"query": _ANILIST_VIEWER_QUERY},
                headers={"Authorization": f"Bearer {access_token}"},
            )
        if response.is_error:
            return None
        viewer = (response.json().get("data") or {}).get("Viewer")
        if not viewer:
            return None
        return ProviderUser(
            provider_user_id=str(viewer["id"]),
            username=viewer["name"],
            avatar_url=(viewer.get("avatar") or {}).get("large"),
        )

    async def _verify_mal(self, access_token: str) -> ProviderUser | None:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self._mal_client_id:
            headers["X-MAL-CLIENT-ID"] = self._mal_client_id
        async with self._client() as client:
            response = await client.get(MAL_ME_URL, headers=headers)
        if response.is_error:
            return None
        data = response.json()
        return ProviderUser(
            provider_user_id=str(data["id"]),
            username=data["name"],
            avatar_url=data.get("picture"),
        )

    async def _verify_simkl(self, access_token: str) -> ProviderUser | None:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self._simkl_client_id:
            headers["simkl-api-key"] = self._simkl_client_id
        async with self._client() as client:
            response = await client.get(SIMKL_SETTINGS_URL, headers=headers)
        if response.is_error:
            return None
        data = response.json()
        account = data.get("account") or {}
        user = data.get("user") or {}
        if "id" not in account:
            return None
        return ProviderUser(
            provider_user_id=str(account["id"]),
            username=user.get("name") or str(account["id"]),
            avatar_url=user.get("avatar"),
        )
