"""Tests for the liveness endpoint and the front-end fallback."""

from datetime import datetime

from fastapi import status
from fastapi.testclient import TestClient

from waitlist_gate.core.settings import Settings
from waitlist_gate.db.session import Database
from waitlist_gate.main import create_app


def test_health(client: TestClient) -> None:
    r = client.get("/api/health")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["status"] == "ok"
    assert data["timestamp"].endswith("Z")
    datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))


def test_unknown_path_serves_index(client: TestClient) -> None:
    r = client.get("/some/client/route")
    assert r.status_code == status.HTTP_200_OK
    assert "<div id=root>" in r.text


def test_existing_asset_is_served(client: TestClient) -> None:
    r = client.get("/assets/app.js")
    assert r.status_code == status.HTTP_200_OK
    assert r.text == "console.log('waitlist')"


def test_path_traversal_falls_back_to_index(client: TestClient) -> None:
    r = client.get("/..%2F..%2Fetc%2Fpasswd")
    assert r.status_code == status.HTTP_200_OK
    assert "<div id=root>" in r.text


def test_unknown_api_route_is_json_404(client: TestClient) -> None:
    r = client.get("/api/unknown")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json() == {"error": "Not found"}


def test_missing_build_is_404(test_settings: Settings, database: Database, tmp_path) -> None:
    cfg = test_settings.model_copy(update={"static_dir": str(tmp_path / "missing")})
    with TestClient(create_app(cfg, database=database)) as client:
        r = client.get("/")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json() == {"error": "Front end has not been built"}
