"""Pytest configuration for backend tests.

Each test gets a fresh app wired to temp music/cache directories and a fake
transcoder, so no ffmpeg binary is needed.
"""

import time

import pytest
from fastapi.testclient import TestClient

from conftest import TEST_PASSWORD, FakeTranscoder
from web.backend.main import create_app


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder(auto_complete=True)


@pytest.fixture
def app(test_config, transcoder):
    return create_app(test_config, transcoder=transcoder)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def wait_for_state(client):
    """Poll the status endpoint until it reports the wanted state."""

    def _wait(filename: str, state: str, timeout: float = 2.0) -> dict:
        deadline = time.monotonic() + timeout
        while True:
            body = client.get(f"/hls-status/{filename}").json()
            if body["state"] == state or time.monotonic() > deadline:
                return body
            time.sleep(0.01)

    return _wait
