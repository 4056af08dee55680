"""Tests for upgrading a waitlist table created before wallet support."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from waitlist_gate.core.settings import Settings
from waitlist_gate.db.session import Database
from waitlist_gate.main import create_app
from waitlist_gate.scripts import init_db as init_db_script
from waitlist_gate.services.identity_provider import IdentityProviderClient
from waitlist_gate.services.oauth_state import MemoryAttemptStore

ADDRESS = "0xAbCdEf0123456789abcdef0123456789ABCDEF01"

PRE_WALLET_TABLE = """
CREATE TABLE waitlist (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    twitter_id VARCHAR(255) UNIQUE NOT NULL,
    twitter_username VARCHAR(255) NOT NULL,
    twitter_display_name VARCHAR(255),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

EXISTING_SIGNUP = """
INSERT INTO waitlist (twitter_id, twitter_username, twitter_display_name, created_at)
VALUES ('1001', 'alice', 'Alice A', '2025-06-01 12:00:00')
"""


def _create_pre_wallet_table(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(text(PRE_WALLET_TABLE))
        conn.execute(text(EXISTING_SIGNUP))


def _columns(engine: Engine) -> set[str]:
    return {column["name"] for column in inspect(engine).get_columns("waitlist")}


@pytest.fixture()
def legacy_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _create_pre_wallet_table(engine)
    try:
        yield engine
    finally:
        engine.dispose()


def test_upgrade_adds_missing_columns(legacy_engine: Engine) -> None:
    database = Database(engine=legacy_engine)

    added = database.upgrade_legacy_schema()

    assert added == ["wallet_address", "updated_at"]
    assert {"wallet_address", "updated_at"} <= _columns(legacy_engine)
    indexes = {index["name"] for index in inspect(legacy_engine).get_indexes("waitlist")}
    assert "ix_waitlist_twitter_username" in indexes
    with legacy_engine.connect() as conn:
        row = conn.execute(text("SELECT created_at, updated_at, wallet_address FROM waitlist")).one()
    assert row.updated_at == row.created_at
    assert row.wallet_address is None


def test_upgrade_is_idempotent(legacy_engine: Engine) -> None:
    database = Database(engine=legacy_engine)

    database.create_tables()

    assert database.upgrade_legacy_schema() == []


def test_app_serves_pre_wallet_table(
    legacy_engine: Engine,
    test_settings: Settings,
    provider_client: IdentityProviderClient,
) -> None:
    app = create_app(
        test_settings,
        database=Database(engine=legacy_engine),
        provider_client=provider_client,
        attempt_store=MemoryAttemptStore(60),
    )

    with TestClient(app, base_url="http://test", follow_redirects=False) as client:
        saved = client.post(
            "/api/wallet/save",
            json={"twitter_username": "alice", "wallet_address": ADDRESS},
        )
        listing = client.get("/api/waitlist/all")

        auth_url = client.get("/api/auth/initiate").json()["authUrl"]
        state = parse_qs(urlsplit(auth_url).query)["state"][0]
        callback = client.get("/api/auth/callback", params={"code": "abc", "state": state})
        count = client.get("/api/waitlist/count")

    assert saved.status_code == status.HTTP_200_OK
    assert saved.json() == {"success": True}
    assert listing.status_code == status.HTTP_200_OK
    (user,) = listing.json()["users"]
    assert user["twitter_username"] == "alice"
    assert user["wallet_address"] == ADDRESS
    assert callback.headers["location"].startswith("/?success=true&username=alice")
    assert count.json() == {"count": 1}


def test_migrate_upgrades_pre_wallet_table(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'legacy.db'}"
    engine = create_engine(url)
    try:
        _create_pre_wallet_table(engine)

        assert init_db_script.main(["--migrate", "--url", url]) == 0

        assert {"wallet_address", "updated_at"} <= _columns(engine)
        with engine.connect() as conn:
            handles = conn.execute(text("SELECT twitter_username FROM waitlist")).scalars().all()
    finally:
        engine.dispose()
    assert handles == ["alice"]


def test_migrate_creates_fresh_table(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'fresh.db'}"

    assert init_db_script.main(["--migrate", "--url", url]) == 0

    engine = create_engine(url)
    try:
        columns = _columns(engine)
    finally:
        engine.dispose()
    assert columns == {
        "id",
        "twitter_id",
        "twitter_username",
        "twitter_display_name",
        "wallet_address",
        "created_at",
        "updated_at",
    }
