"""Tests for FastAPI application wiring."""

from fastapi.testclient import TestClient

from web.backend.main import create_app


def test_health_endpoint(client):
    """Test health check endpoint returns 200."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_cors_headers_when_origins_configured(test_config, transcoder):
    """CORS is only enabled for configured origins."""
    test_config.server.allowed_origins = ["http://localhost:5173"]
    with TestClient(create_app(test_config, transcoder=transcoder)) as client:
        response = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_components_on_app_state(app, client):
    for name in ("config", "store", "metadata", "covers", "orchestrator", "library", "verifier"):
        assert hasattr(app.state, name)


def test_shutdown_stops_running_transcodes(test_config, music_dir):
    from conftest import FakeTranscoder

    transcoder = FakeTranscoder(auto_complete=False)
    (music_dir / "long.flac").write_bytes(b"fLaC")

    with TestClient(create_app(test_config, transcoder=transcoder)) as client:
        assert client.get("/hls/long.flac").status_code == 202

    assert transcoder.launches[0].killed
