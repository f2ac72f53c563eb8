"""Smoke tests for the assembled application."""

from fastapi.testclient import TestClient

from liveclass.main import app, build_granian_kwargs


class TestApp:
    def test_health(self):
        with TestClient(app) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["results"] == "OK"

    def test_unknown_live_class_uses_failure_envelope(self):
        with TestClient(app) as client:
            response = client.get("/live-classes/lc_missing")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["errcode"] == "E_NOT_FOUND"

    def test_granian_kwargs(self):
        kwargs = build_granian_kwargs()
        assert kwargs["interface"] == "asgi"
        assert isinstance(kwargs["port"], int)
