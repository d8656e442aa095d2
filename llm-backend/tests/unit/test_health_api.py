"""
Tests for shared/api/health.py

Covers 3 endpoints: read_root, get_model_config, database_health.
"""

import pytest
from unittest.mock import MagicMock, patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared.api.health import router


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_client():
    """Build a test app with only the health router."""
    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


# ===========================================================================
# read_root
# ===========================================================================

class TestReadRoot:

    def test_health_check(self, health_client):
        resp = health_client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "BoringCourse Backend", "version": "1.0.0"}


# ===========================================================================
# get_model_config
# ===========================================================================

class TestGetModelConfig:

    @patch("shared.api.health.get_settings")
    def test_reports_configured_model(self, mock_get_settings, health_client):
        mock_settings = MagicMock()
        mock_settings.llm_provider = "google"
        mock_settings.llm_model = "gemini-2.5-flash"
        mock_settings.guide_max_output_tokens = 3600
        mock_settings.guide_reasoning_effort = "low"
        mock_get_settings.return_value = mock_settings

        resp = health_client.get("/config/models")
        assert resp.status_code == 200
        data = resp.json()
        assert data["provider"] == "google"
        assert data["model_id"] == "gemini-2.5-flash"
        assert data["guide_max_output_tokens"] == 3600


# ===========================================================================
# database_health
# ===========================================================================

class TestDatabaseHealth:

    @patch("shared.api.health.get_db_manager")
    def test_db_healthy(self, mock_get_manager, health_client):
        mock_get_manager.return_value.health_check.return_value = True

        data = health_client.get("/health/db").json()
        assert data == {"status": "ok", "database": "connected"}

    @patch("shared.api.health.get_db_manager")
    def test_db_unhealthy(self, mock_get_manager, health_client):
        mock_get_manager.return_value.health_check.return_value = False

        data = health_client.get("/health/db").json()
        assert data == {"status": "error", "database": "connection_failed"}

    @patch("shared.api.health.get_db_manager")
    def test_db_exception(self, mock_get_manager, health_client):
        mock_get_manager.side_effect = RuntimeError("cannot connect")

        resp = health_client.get("/health/db")
        assert resp.status_code == 200
        assert "cannot connect" in resp.json()["database"]


# ===========================================================================
# Application wiring
# ===========================================================================

class TestApplication:

    def test_all_routers_mounted(self, client):
        paths = {route.path for route in client.app.routes}
        assert {"/", "/history", "/overview", "/study-guide/scope", "/study-tools/quiz", "/tutor"} <= paths

    def test_missing_canvas_credentials_handled_by_app(self, client, monkeypatch):
        from config import reset_settings

        monkeypatch.delenv("CANVAS_BASE_URL", raising=False)
        monkeypatch.delenv("CANVAS_API_TOKEN", raising=False)
        reset_settings()
        try:
            resp = client.get("/courses")
        finally:
            reset_settings()

        assert resp.status_code == 422
        assert resp.json()["detail"]["field"] == "x-canvas-base-url"
