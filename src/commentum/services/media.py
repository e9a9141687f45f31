# src/commentum/services/media.py
"""Best-effort media metadata enrichment for new comments."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from commentum.core.security import Provider
from commentum.core.settings import Settings
from commentum.models.comment import Comment
from commentum.models.media import Media

logger = logging.getLogger(__name__)

ANILIST_GRAPHQL_URL = "https://graphql.anilist.co"
MAL_API_URL = "https://api.myanimelist.net/v2"
SIMKL_API_URL = "https://api.simkl.com"
SIMKL_POSTER_URL = "https://simkl.in/posters/{poster}_m.jpg"

_ANILIST_MEDIA_QUERY = (
    "query ($id: Int, $type: MediaType) { Media(id: $id, type: $type) "
    "{ id title { romaji } coverImage { large } seasonYear } }"
)


@dataclass(frozen=True)
class MediaInfo:
    media_id: str
    media_type: str
    title: str
    year: int | None = None
    poster: str | None = None


class MediaFetcher:
    """Look titles up on AniList, MyAnimeList or SIMKL."""

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
    def from_settings(cls, settings: Settings) -> MediaFetcher:
        return cls(
            timeout_seconds=settings.http_timeout_seconds,
            mal_client_id=settings.mal_client_id,
            simkl_client_id=settings.simkl_client_id,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def fetch(
        self, provider: Provider, media_id: str, media_type: str = "anime"
    ) -> MediaInfo | None:
        """Return metadata for ``media_id``; ``other`` tries every provider in order."""
        if provider is Provider.OTHER:
            for candidate in (Provider.ANILIST, Provider.MYANIMELIST, Provider.SIMKL):
                info = await self.fetch(candidate, media_id, media_type)
                if info is not None:
                    return info
            return None

        lookups = {
            Provider.ANILIST: self._fetch_anilist,
            Provider.MYANIMELIST: self._fetch_mal,
            Provider.SIMKL: self._fetch_simkl,
        }
        try:
            return await lookups[provider](media_id, media_type)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Media lookup of %s on %s failed: %s", media_id, provider.value, exc)
            return None

    async def _fetch_anilist(self, media_id: str, media_type: str) -> MediaInfo | None:
        kind = "MANGA" if media_type == "manga" else "ANIME"
        async with self._client() as client:
            response = await client.post(
                ANILIST_GRAPHQL_URL,
                json={"query": _ANILIST_MEDIA_QUERY, "variables": {"id": int(media_id), "type": kind}},
            )
        if response.is_error:
            return None
        media = (response.json().get("data") or {}).get("Media")
        if not media:
            return None
        return MediaInfo(
            media_id=str(media["id"]),
            media_type="manga" if media_type == "manga" else "anime",
            title=media["title"]["romaji"],
            year=media.get("seasonYear"),
            poster=(media.get("coverImage") or {}).get("large"),
        )

    async def _fetch_mal(self, media_id: str, media_type: str) -> MediaInfo | None:
        if not self._mal_client_id:
            logger.debug("MAL_CLIENT_ID not configured; skipping MyAnimeList lookup")
            return None
        kind = "manga" if media_type == "manga" else "anime"
        async with self._client() as client:
            response = await client.get(
                f"{MAL_API_URL}/{kind}/{media_id}",
                params={"fields": "start_date,main_picture"},
                headers={"X-MAL-CLIENT-ID": self._mal_client_id},
            )
        if response.is_error:
            return None
        data = response.json()
        start_date = data.get("start_date") or ""
        return MediaInfo(
            media_id=str(data["id"]),
            media_type=kind,
            title=data["title"],
            year=int(start_date[:4]) if start_date[:4].isdigit() else None,
            poster=(data.get("main_picture") or {}).get("large"),
        )

    async def _fetch_simkl(self, media_id: str, media_type: str) -> MediaInfo | None:
        if not self._simkl_client_id:
            logger.debug("SIMKL_CLIENT_ID not configured; skipping SIMKL lookup")
            return None
        kind = "manga" if media_type == "manga" else "anime"
        async with self._client() as client:
            response = await client.get(
                f"{SIMKL_API_URL}/{kind}/{media_id}",
                params={"extended": "full"},
                headers={"simkl-api-key": self._simkl_client_id},
            )
        if response.is_error:
            return None
        data = response.json()
        poster = data.get("poster")
        ids = data.get("ids") or {}
        return MediaInfo(
            media_id=str(ids.get("simkl") or data.get("id") or media_id),
            media_type=kind,
            title=data["title"],
            year=data.get("year"),
            poster=SIMKL_POSTER_URL.format(poster=poster) if poster else None,
        )


def cache_media(db: Session, provider: Provider, media_id: str, info: MediaInfo) -> Media:
    """Store ``info`` in the media cache under the requested id."""
    media = db.get(Media, (media_id, provider.value))
    if media is None:
        media = Media(media_id=media_id, provider=provider.value, title=info.title)
        db.add(media)
    media.media_type = info.media_type
    media.title = info.title
    media.year = info.year
    media.poster = info.poster
    return media


async def enrich_comment(
    session_factory: Callable[[], Session],
    fetcher: MediaFetcher,
    comment_id: int,
    provider: Provider,
    media_id: str,
) -> bool:
    """Fill the media fields of ``comment_id`` from the cache or a provider.

    Runs as a background task with its own session; failures are logged.
    """
    db = session_factory()
    try:
        media = db.get(Media, (media_id, provider.value))
        if media is None:
            info = await fetcher.fetch(provider, media_id)
            if info is None:
                logger.info("No media metadata found for %s on %s", media_id, provider.value)
                return False
            media = cache_media(db, provider, media_id, info)

        comment = db.get(Comment, comment_id)
        if comment is None:
            return False
        comment.media_type = media.media_type
        comment.media_title = media.title
        comment.media_year = media.year
        comment.media_poster = media.poster
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store media metadata for comment %s", comment_id)
        return False
    finally:
        db.close()
