"""Tests for error handling and exception management."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    APIError,
    ForbiddenError,
    NotFoundError,
    ValidationAPIError,
    format_error_response,
    setup_error_handlers,
)


class TestAPIError:
    """Test APIError exception classes."""

    def test_api_error_creation(self):
        """Test creating a basic APIError."""
        error = APIError(
            status_code=400,
            error_code="test_error",
            message="Test error message",
            details={"key": "value"},
        )

        assert error.status_code == 400
        assert error.error_code == "test_error"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error message"

    def test_validation_error_with_field(self):
        """Test a single-field ValidationAPIError."""
        error = ValidationAPIError("Invalid bucket: X", field="bucket")

        assert error.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        assert error.error_code == "validation_error"
        assert error.details == {
            "errors": [{"field": "bucket", "message": "Invalid bucket: X"}]
        }

    def test_validation_error_explicit_errors_win(self):
        """Test explicit errors are kept as given."""
        errors = [{"field": "lift_percentage", "message": "bad"}]
        error = ValidationAPIError("Bad split", errors=errors, field="ignored")

        assert error.details == {"errors": errors}

    def test_not_found_error_stringifies_identifier(self):
        """Test NotFoundError with a UUID-like identifier."""
        error = NotFoundError("Contribution", 42)

        assert error.status_code == status.HTTP_404_NOT_FOUND
        assert error.message == "Contribution not found: 42"
        assert error.details == {"resource": "Contribution", "identifier": "42"}

    def test_not_found_error_no_identifier(self):
        error = NotFoundError("Event")

        assert error.message == "Event not found"
        assert error.details["identifier"] is None

    def test_forbidden_error(self):
        """Test ForbiddenError defaults."""
        error = ForbiddenError()

        assert error.status_code == status.HTTP_403_FORBIDDEN
        assert error.message == "Forbidden"


class TestFormatErrorResponse:
    """Test format_error_response function."""

    def test_format_api_error(self):
        """Test formatting APIError."""
        request = Mock()
        request.state.request_id = "test-123"

        response = format_error_response(ForbiddenError("Admins only"), request)

        assert response == {
            "error": {
                "code": "forbidden",
                "message": "Admins only",
                "request_id": "test-123",
            }
        }

    def test_format_generic_error_hides_details(self):
        """Test unexpected errors do not leak their message by default."""
        request = Mock()
        request.state.request_id = "test-123"

        response = format_error_response(ValueError("secret"), request)

        assert response["error"]["code"] == "internal_error"
        assert "details" not in response["error"]


class Payload(BaseModel):
    amount: int = Field(..., gt=0)


def _make_app(debug: bool = False) -> FastAPI:
    app = FastAPI()
    setup_error_handlers(app, debug=debug)

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Expense", "abc")

    @app.get("/bad")
    async def bad():
        raise ValidationAPIError("Invalid bucket: X", field="bucket")

    @app.post("/payload")
    async def payload(body: Payload):
        return {"ok": True}

    @app.get("/integrity")
    async def integrity():
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


class TestErrorHandlers:
    """Test the registered handlers end to end."""

    def test_api_error_envelope(self):
        """Test APIError subclasses render the error envelope."""
        with patch("app.core.errors.emit_error") as mock_emit:
            response = TestClient(_make_app()).get("/missing")

        assert response.status_code == 404
        body = response.json()["error"]
        assert body["code"] == "not_found"
        assert body["message"] == "Expense not found: abc"
        assert body["details"]["resource"] == "Expense"
        mock_emit.assert_called_once()

    def test_validation_api_error(self):
        """Test rule violations map to 422."""
        with patch("app.core.errors.emit_error"):
            response = TestClient(_make_app()).get("/bad")

        assert response.status_code == 422
        assert response.json()["error"]["details"]["errors"][0]["field"] == "bucket"

    def test_request_validation_error(self):
        """Test request parsing errors use the same envelope."""
        with patch("app.core.errors.emit_error"):
            response = TestClient(_make_app()).post("/payload", json={"amount": 0})

        assert response.status_code == 422
        body = response.json()["error"]
        assert body["code"] == "validation_error"
        assert body["details"]["errors"][0]["field"] == "body.amount"

    def test_database_error(self):
        """Test database errors map to 500 database_error."""
        with patch("app.core.errors.emit_error"):
            response = TestClient(_make_app()).get("/integrity")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "database_error"
        assert "integrity" in response.json()["error"]["message"].lower()

    @pytest.mark.parametrize("debug", [False, True])
    def test_unhandled_exception(self, debug):
        """Test unexpected exceptions map to 500 internal_error."""
        with patch("app.core.errors.emit_error"):
            client = TestClient(_make_app(debug=debug), raise_server_exceptions=False)
            response = client.get("/boom")

        assert response.status_code == 500
        body = response.json()["error"]
        assert body["code"] == "internal_error"
        assert ("details" in body) is debug
