"""Tests for EMF metrics emission."""

from __future__ import annotations

import json
import logging

import pytest

from app.core import metrics as metrics_module
from app.core.metrics import (
    EMFMetrics,
    _normalize_path,
    emit_error,
    emit_http_request,
    emit_ledger_event,
)


def _emf_records(caplog) -> list[dict]:
    return [
        json.loads(r.getMessage())
        for r in caplog.records
        if r.name == "app.core.metrics"
    ]


@pytest.fixture(autouse=True)
def metrics_enabled(monkeypatch):
    monkeypatch.setattr(metrics_module.settings, "enable_metrics", True)
    monkeypatch.setattr(metrics_module, "_emf_metrics", EMFMetrics(namespace="LIFT/Test"))


class TestEMFMetrics:
    """Test the EMF log structure."""

    def test_emit_metric_structure(self, caplog):
        """Test a single metric produces a valid EMF document."""
        caplog.set_level(logging.INFO, logger="app.core.metrics")

        EMFMetrics(namespace="LIFT/Test").emit_metric(
            "Widgets", 3, "Count", dimensions={"Kind": "blue"}
        )

        (doc,) = _emf_records(caplog)
        directive = doc["_aws"]["CloudWatchMetrics"][0]
        assert directive["Namespace"] == "LIFT/Test"
        assert directive["Metrics"] == [{"MetricName": "Widgets", "Unit": "Count"}]
        assert directive["Dimensions"] == [["Kind"]]
        assert doc["Widgets"] == 3
        assert doc["Kind"] == "blue"

    def test_disabled(self, caplog, monkeypatch):
        """Test nothing is written when metrics are disabled."""
        caplog.set_level(logging.INFO, logger="app.core.metrics")
        monkeypatch.setattr(metrics_module.settings, "enable_metrics", False)

        EMFMetrics(namespace="LIFT/Test").emit_metric("Widgets", 1, "Count")

        assert _emf_records(caplog) == []


class TestHelpers:
    """Test the emit_* helpers."""

    def test_emit_ledger_event_with_amount(self, caplog):
        """Test ledger events carry count and amount."""
        caplog.set_level(logging.INFO, logger="app.core.metrics")

        emit_ledger_event("CONTRIBUTION", "approved", "125.50", status="APPROVED")

        (doc,) = _emf_records(caplog)
        assert doc["LedgerEventCount"] == 1
        assert doc["LedgerEventAmount"] == 125.5
        assert doc["EntityType"] == "CONTRIBUTION"
        assert doc["Action"] == "approved"
        assert doc["status"] == "APPROVED"

    def test_emit_ledger_event_without_amount(self, caplog):
        caplog.set_level(logging.INFO, logger="app.core.metrics")

        emit_ledger_event("EXPENSE", "rejected")

        (doc,) = _emf_records(caplog)
        assert "LedgerEventAmount" not in doc

    def test_emit_error_severity(self, caplog):
        """Test 5xx errors are tagged as server errors."""
        caplog.set_level(logging.INFO, logger="app.core.metrics")

        emit_error("internal_error", 500, "/api/v1/admin/expenses", "GET")
        emit_error("not_found", 404, "/api/v1/admin/expenses", "GET")

        first, second = _emf_records(caplog)
        assert first["Severity"] == "server_error"
        assert second["Severity"] == "client_error"

    def test_emit_http_request_normalizes_path(self, caplog):
        """Test IDs are replaced so paths stay low-cardinality."""
        caplog.set_level(logging.INFO, logger="app.core.metrics")

        emit_http_request(
            "PUT",
            "/api/v1/admin/contributions/3f2b8c4e-1d2a-4b5c-8d9e-0a1b2c3d4e5f/approve",
            200,
            12.5,
        )

        (doc,) = _emf_records(caplog)
        assert doc["Path"] == "/api/v1/admin/contributions/{id}/approve"
        assert doc["RequestDuration"] == 12.5


class TestNormalizePath:
    def test_numeric_ids(self):
        assert _normalize_path("/items/42/detail") == "/items/{id}/detail"

    def test_plain_path_unchanged(self):
        assert _normalize_path("/api/v1/reports/budget") == "/api/v1/reports/budget"
