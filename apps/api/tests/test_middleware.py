"""Tests for FastAPI middleware and logging setup."""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from app.main import JSONFormatter


def _logged_app() -> FastAPI:
    app = FastAPI()

    @app.get("/test")
    async def test_endpoint(request: Request):
        return {"request_id": getattr(request.state, "request_id", None)}

    # Last added runs first, so the request ID is set before logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    return app


class TestRequestIDMiddleware:
    """Test RequestIDMiddleware functionality."""

    def test_adds_request_id_when_missing(self, client: TestClient):
        """Test that middleware generates request ID when missing."""
        response = client.get("/health")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 36  # UUID format

    def test_preserves_existing_request_id(self, client: TestClient):
        """Test that middleware preserves existing X-Request-ID header."""
        response = client.get("/health", headers={"X-Request-ID": "req-12345"})

        assert response.headers["X-Request-ID"] == "req-12345"

    def test_request_id_in_state(self):
        """Test that request ID is stored in request state."""
        response = TestClient(_logged_app()).get("/test")

        assert response.json()["request_id"] == response.headers["X-Request-ID"]


class TestSecurityHeadersMiddleware:
    """Test SecurityHeadersMiddleware functionality."""

    def test_security_headers_present(self, client: TestClient):
        """Test that security headers are added to responses."""
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers

    def test_hsts_in_production(self, monkeypatch):
        """Test that HSTS header is only added in production."""
        monkeypatch.setattr(settings, "app_env", "production")
        app = FastAPI()

        @app.get("/test")
        async def test_endpoint():
            return {}

        app.add_middleware(SecurityHeadersMiddleware)

        response = TestClient(app).get("/test")

        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]


class TestRequestLoggingMiddleware:
    """Test RequestLoggingMiddleware functionality."""

    def test_logs_request_and_response(self, caplog):
        """Test that requests and responses are logged with the request ID."""
        caplog.set_level(logging.INFO)

        response = TestClient(_logged_app()).get(
            "/test", headers={"X-Request-ID": "req-777"}
        )

        messages = [
            json.loads(r.getMessage())
            for r in caplog.records
            if r.name == "app.core.middleware"
        ]
        request_log = next(m for m in messages if m["type"] == "http_request")
        response_log = next(m for m in messages if m["type"] == "http_response")

        assert request_log["request_id"] == "req-777"
        assert request_log["path"] == "/test"
        assert response_log["status_code"] == 200
        assert response.headers["X-Process-Time"].endswith("ms")

    def test_excludes_health_endpoint(self, client: TestClient, caplog):
        """Test that health checks are not logged."""
        caplog.set_level(logging.INFO)

        client.get("/health")

        assert not [r for r in caplog.records if r.name == "app.core.middleware"]


class TestJSONFormatter:
    """Test the structured log formatter."""

    def test_includes_extra_fields(self):
        """Test fields passed via ``extra`` appear in the JSON line."""
        logger = logging.getLogger("app.tests.formatter")
        record = logger.makeRecord(
            logger.name,
            logging.INFO,
            __file__,
            1,
            "Contribution approved",
            (),
            None,
            extra={"contribution_id": "abc", "request_id": "req-1"},
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Contribution approved"
        assert data["level"] == "INFO"
        assert data["contribution_id"] == "abc"
        assert data["request_id"] == "req-1"
        assert "msg" not in data
