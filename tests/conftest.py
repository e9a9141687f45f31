# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from commentum.api.v1.dependencies import (  # noqa: E402
    get_media_fetcher,
    get_notifier,
    get_session_factory,
    get_token_codec,
)
from commentum.core.security import Provider, TokenCodec  # noqa: E402
from commentum.db.session import Base  # noqa: E402
from commentum.db.session import get_db as app_get_session  # noqa: E402
from commentum.main import app as fastapi_app  # noqa: E402
from commentum.models import Comment, User  # noqa: E402
from commentum.services.media import MediaInfo  # noqa: E402
from commentum.services.notifications import Notification  # noqa: E402

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy drive BEGIN so savepoints nest inside the per-test transaction.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def connection(engine: Engine) -> Iterator[Any]:
    connection = engine.connect()
    transaction = connection.begin()
    try:
        yield connection
    finally:
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits escaped.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def session_factory(connection: Any) -> sessionmaker[Session]:
    """Sessions whose commit and rollback only touch a savepoint of the test transaction."""
    return sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@dataclass
class RecordingNotifier:
    """Stands in for the Discord notifier and keeps what it was asked to send."""

    sent: list[Notification] = field(default_factory=list)
    enabled: bool = True

    async def send(self, notification: Notification) -> bool:
        self.sent.append(notification)
        return True

    def types(self) -> list[str]:
        return [notification.type.value for notification in self.sent]


class FakeMediaFetcher:
    """Media fetcher answering from a fixed table instead of the network."""

    def __init__(self, catalogue: dict[tuple[Provider, str], MediaInfo] | None = None) -> None:
        self.catalogue = catalogue or {}
        self.calls: list[tuple[Provider, str]] = []

    async def fetch(
        self, provider: Provider, media_id: str, media_type: str = "anime"
    ) -> MediaInfo | None:
        self.calls.append((provider, media_id))
        return self.catalogue.get((provider, media_id))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def media_fetcher() -> FakeMediaFetcher:
    return FakeMediaFetcher(
        {
            (Provider.ANILIST, "21"): MediaInfo(
                media_id="21",
                media_type="anime",
                title="One Piece",
                year=1999,
                poster="https://img.example/21.jpg",
            )
        }
    )


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    session_factory: sessionmaker[Session],
    notifier: RecordingNotifier,
    media_fetcher: FakeMediaFetcher,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    overrides: dict[Callable[..., Any], Callable[..., Any]] = {
        app_get_session: _get_session_override,
        get_session_factory: lambda: session_factory,
        get_notifier: lambda: notifier,
        get_media_fetcher: lambda: media_fetcher,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def api(client: TestClient) -> Callable[..., Any]:
    """POST an action envelope to ``/api/v1/<resource>/``."""

    def _call(resource: str, **body: Any) -> Any:
        return client.post(f"/api/v1/{resource}/", json=body)

    return _call


@pytest.fixture()
def codec() -> TokenCodec:
    return get_token_codec()


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with the given role and restrictions."""

    def _make_user(
        user_id: str,
        provider: Provider = Provider.ANILIST,
        role: str = "user",
        **fields: Any,
    ) -> User:
        user = User(
            user_id=user_id,
            provider=provider.value,
            username=fields.pop("username", f"user-{user_id}"),
            role=role,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def token_for(codec: TokenCodec) -> Callable[[User], str]:
    def _token_for(user: User) -> str:
        return codec.issue(user.user_id, Provider(user.provider))

    return _token_for


@pytest.fixture()
def make_comment(db_session: Session) -> Callable[..., Comment]:
    """Return a factory persisting comments authored by ``author``."""

    def _make_comment(author: User, media_id: str = "21", content: str = "Great episode", **fields: Any) -> Comment:
        comment = Comment(
            author_id=author.user_id,
            author_provider=author.provider,
            username=author.username,
            user_role=author.role,
            media_id=media_id,
            content=content,
            **fields,
        )
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make_comment


@pytest.fixture()
def alice(make_user: Callable[..., User]) -> User:
    return make_user("1001", username="alice")


@pytest.fixture()
def bob(make_user: Callable[..., User]) -> User:
    return make_user("1002", username="bob")


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user("2001", role="moderator", username="mod")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("3001", role="admin", username="admin")


@pytest.fixture()
def super_admin(make_user: Callable[..., User]) -> User:
    return make_user("4001", role="super_admin", username="root")
