# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import waitlist_gate.models  # noqa: E402,F401
from waitlist_gate.core.settings import Settings  # noqa: E402
from waitlist_gate.db.session import Base, Database  # noqa: E402
from waitlist_gate.main import create_app  # noqa: E402
from waitlist_gate.services.identity_provider import (  # noqa: E402
    IdentityProviderClient,
    load_provider_config,
)
from waitlist_gate.services.oauth_state import MemoryAttemptStore  # noqa: E402
from waitlist_gate.services.waitlist import WaitlistStore  # noqa: E402

TEST_DB_URL = "sqlite://"
TOKEN_PATH = "/2/oauth2/token"
USER_PATH = "/2/users/me"


class TickingClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class ProviderStub:
    """In-memory stand-in for the provider's token and user endpoints."""

    def __init__(self) -> None:
        self.token_status = 200
        self.token_body: Any = {"access_token": "access-123", "token_type": "bearer"}
        self.user_status = 200
        self.user_body: Any = {"data": {"id": "1001", "username": "alice", "name": "Alice A"}}
        self.fail_with: dict[str, Exception] = {}
        self.requests: list[httpx.Request] = []

    def set_user(self, identity_id: str, username: str, name: str | None = None) -> None:
        data: dict[str, str] = {"id": identity_id, "username": username}
        if name is not None:
            data["name"] = name
        self.user_body = {"data": data}

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.fail_with:
            raise self.fail_with[path]
        if path == TOKEN_PATH:
            return self._respond(self.token_status, self.token_body)
        if path == USER_PATH:
            return self._respond(self.user_status, self.user_body)
        return httpx.Response(404, json={"title": "Not Found"})

    @staticmethod
    def _respond(status_code: int, body: Any) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)


@pytest.fixture()
def static_dir(tmp_path: Path) -> Path:
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)
    (dist / "index.html").write_text("<!doctype html><div id=root></div>", encoding="utf-8")
    (dist / "assets" / "app.js").write_text("console.log('waitlist')", encoding="utf-8")
    return dist


@pytest.fixture()
def test_settings(static_dir: Path) -> Settings:
    return Settings(
        twitter_client_id="test-client",
        twitter_client_secret="test-secret",
        app_url="http://test",
        database_url=TEST_DB_URL,
        static_dir=str(static_dir),
        log_level="WARNING",
        redis_url=None,
    )


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def database(engine: Engine) -> Database:
    return Database(engine=engine)


@pytest.fixture()
def db_session(database: Database) -> Iterator[Session]:
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def waitlist_store(db_session: Session, clock: TickingClock) -> WaitlistStore:
    return WaitlistStore(db_session, clock=clock)


@pytest.fixture()
def provider_stub() -> ProviderStub:
    return ProviderStub()


@pytest.fixture()
def provider_client(test_settings: Settings, provider_stub: ProviderStub) -> IdentityProviderClient:
    return IdentityProviderClient(
        load_provider_config(test_settings),
        transport=httpx.MockTransport(provider_stub.handler),
    )


@pytest.fixture()
def attempt_store(test_settings: Settings) -> MemoryAttemptStore:
    return MemoryAttemptStore(test_settings.oauth_state_ttl_seconds)


@pytest.fixture()
def app(
    test_settings: Settings,
    database: Database,
    provider_client: IdentityProviderClient,
    attempt_store: MemoryAttemptStore,
) -> FastAPI:
    return create_app(
        test_settings,
        database=database,
        provider_client=provider_client,
        attempt_store=attempt_store,
    )


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test", follow_redirects=False) as test_client:
        yield test_client
