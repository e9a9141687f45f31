# tests/services/test_media.py
"""Tests for media metadata lookup and comment enrichment."""

import httpx
import pytest
from sqlalchemy.orm import Session, sessionmaker

from commentum.core.security import Provider
from commentum.models import Comment, Media, User
from commentum.services.media import MediaFetcher, MediaInfo, enrich_comment


def _fetcher(handler, **kwargs) -> MediaFetcher:
    return MediaFetcher(transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_anilist_lookup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": {
                    "Media": {
                        "id": 21,
                        "title": {"romaji": "One Piece"},
                        "coverImage": {"large": "op.jpg"},
                        "seasonYear": 1999,
                    }
                }
            },
        )

    info = await _fetcher(handler).fetch(Provider.ANILIST, "21")

    assert info == MediaInfo(
        media_id="21", media_type="anime", title="One Piece", year=1999, poster="op.jpg"
    )


@pytest.mark.asyncio
async def test_myanimelist_lookup_parses_year() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v2/manga/2"
        return httpx.Response(
            200,
            json={
                "id": 2,
                "title": "Berserk",
                "start_date": "1989-08-25",
                "main_picture": {"large": "b.jpg"},
            },
        )

    info = await _fetcher(handler, mal_client_id="mal").fetch(Provider.MYANIMELIST, "2", "manga")

    assert info is not None
    assert (info.title, info.media_type, info.year) == ("Berserk", "manga", 1989)


@pytest.mark.asyncio
async def test_lookup_without_client_id_is_skipped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    fetcher = _fetcher(handler)

    assert await fetcher.fetch(Provider.MYANIMELIST, "2") is None
    assert await fetcher.fetch(Provider.SIMKL, "2") is None


@pytest.mark.asyncio
async def test_other_provider_tries_each_source() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        if request.url.host == "graphql.anilist.co":
            return httpx.Response(404, json={"data": {"Media": None}})
        return httpx.Response(
            200, json={"title": "Frieren", "year": 2023, "poster": "ab/cd", "ids": {"simkl": 77}}
        )

    fetcher = _fetcher(handler, mal_client_id="mal", simkl_client_id="simkl")

    info = await fetcher.fetch(Provider.OTHER, "77")

    assert info is not None
    assert info.title == "Frieren"
    assert info.poster == "https://simkl.in/posters/ab/cd_m.jpg"
    assert seen[0] == "graphql.anilist.co"


@pytest.mark.asyncio
async def test_lookup_failure_returns_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    assert await _fetcher(handler).fetch(Provider.ANILIST, "21") is None


@pytest.mark.asyncio
async def test_enrich_comment_fills_fields_and_caches(
    db_session: Session,
    session_factory: sessionmaker[Session],
    media_fetcher,
    alice: User,
    make_comment,
) -> None:
    comment = make_comment(alice, media_id="21")

    assert await enrich_comment(session_factory, media_fetcher, comment.id, Provider.ANILIST, "21")

    db_session.expire_all()
    stored = db_session.get(Comment, comment.id)
    assert stored.media_title == "One Piece"
    assert stored.media_year == 1999
    assert db_session.get(Media, ("21", "anilist")) is not None


@pytest.mark.asyncio
async def test_enrich_comment_uses_cache_first(
    db_session: Session,
    session_factory: sessionmaker[Session],
    media_fetcher,
    alice: User,
    make_comment,
) -> None:
    db_session.add(Media(media_id="99", provider="anilist", media_type="manga", title="Cached"))
    db_session.commit()
    comment = make_comment(alice, media_id="99")

    assert await enrich_comment(session_factory, media_fetcher, comment.id, Provider.ANILIST, "99")

    db_session.expire_all()
    assert db_session.get(Comment, comment.id).media_title == "Cached"
    assert media_fetcher.calls == []


@pytest.mark.asyncio
async def test_enrich_comment_leaves_placeholder_when_unknown(
    db_session: Session,
    session_factory: sessionmaker[Session],
    media_fetcher,
    alice: User,
    make_comment,
) -> None:
    comment = make_comment(alice, media_id="404")

    assert not await enrich_comment(
        session_factory, media_fetcher, comment.id, Provider.ANILIST, "404"
    )

    db_session.expire_all()
    assert db_session.get(Comment, comment.id).media_title == "Loading..."
