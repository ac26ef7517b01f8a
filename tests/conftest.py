"""Shared fixtures: mock ObservePoint API, API client, Flask console."""
from __future__ import annotations

import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))
sys.path.insert(0, os.path.dirname(__file__))

from mock_observepoint_api import MOCK_API_KEY, MOCK_BASE_URL, MockObservePointAPI

from observepoint_console.client import ObservePointClient
from observepoint_console.config import ClientConfig
from observepoint_console.storage import MemoryStorage


@pytest.fixture
def mock_api():
    return MockObservePointAPI()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def op_client(mock_api, storage):
    """ObservePointClient wired to the mock API with a valid key."""
    config = ClientConfig(base_url=MOCK_BASE_URL, api_key=MOCK_API_KEY, poll_interval_seconds=0)
    client = ObservePointClient(storage=storage, config=config, transport=httpx.MockTransport(mock_api))
    yield client
    client.close()


@pytest.fixture
def app(monkeypatch, tmp_path, mock_api):
    """Console app with a temporary SQLite file and no API key configured."""
    from observepoint_console.app import create_app
    from observepoint_console.database import db

    monkeypatch.setenv("SECRET_KEY", "test_secret_key_for_testing_only")
    monkeypatch.setenv("OBSERVEPOINT_CONSOLE_DB_PATH", str(tmp_path / "console.db"))
    monkeypatch.setenv("OBSERVEPOINT_API_BASE_URL", MOCK_BASE_URL)
    monkeypatch.setenv("OBSERVEPOINT_API_KEY", "")

    app = create_app({
        "TESTING": True,
        "OBSERVEPOINT_TRANSPORT": httpx.MockTransport(mock_api),
    })

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def authed_client(client):
    """Console test client with the mock API key stored."""
    resp = client.post("/api/settings/api-key", json={"apiKey": MOCK_API_KEY})
    assert resp.status_code == 200
    return client
