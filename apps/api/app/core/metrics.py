"""CloudWatch Embedded Metric Format (EMF) metrics helper.

Metrics are written as structured log lines; CloudWatch extracts them
from the log stream, so no SDK client is needed in the request path.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)


class EMFMetrics:
    """Helper class to emit CloudWatch metrics in EMF format."""

    def __init__(self, namespace: str | None = None):
        if namespace:
            self.namespace = namespace
        elif settings.metrics_namespace:
            self.namespace = settings.metrics_namespace
        else:
            self.namespace = settings.app_name.replace(" ", "/")

    def emit_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: dict[str, str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Emit a single metric in EMF format."""
        self.emit_metrics(
            metrics=[{"MetricName": metric_name, "Value": value, "Unit": unit}],
            dimensions=dimensions,
            metadata=metadata,
        )

    def emit_metrics(
        self,
        metrics: list[dict[str, Any]],
        dimensions: dict[str, str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Emit multiple metrics in a single EMF log entry.

        Args:
            metrics: List of metric dictionaries with keys:
                MetricName, Value, Unit
            dimensions: Optional dimensions for all metrics
            metadata: Optional additional metadata to include in log
        """
        # Checked on every call so tests can toggle it at runtime
        if not settings.enable_metrics:
            return

        emf_log = self._build_emf_log(
            metrics=[
                {"MetricName": m["MetricName"], "Unit": m["Unit"]} for m in metrics
            ],
            dimensions=dimensions,
            metadata=metadata,
        )
        for metric in metrics:
            emf_log[metric["MetricName"]] = metric["Value"]

        logger.info(json.dumps(emf_log, default=str))

    def _build_emf_log(
        self,
        metrics: list[dict[str, str]],
        dimensions: dict[str, str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        emf_log: dict[str, Any] = {
            "_aws": {
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.namespace,
                        "Metrics": metrics,
                        "Dimensions": (
                            [[dim] for dim in dimensions.keys()] if dimensions else []
                        ),
                    }
                ],
                "Timestamp": int(time.time() * 1000),  # ms since epoch
            }
        }

        if dimensions:
            emf_log.update(dimensions)
        if metadata:
            emf_log.update(metadata)

        return emf_log


_emf_metrics: EMFMetrics | None = None


def get_metrics() -> EMFMetrics:
    """Get or create the global EMF metrics instance."""
    global _emf_metrics
    if _emf_metrics is None:
        _emf_metrics = EMFMetrics()
    return _emf_metrics


def emit_http_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    **metadata: Any,
) -> None:
    """Emit request count and duration for one HTTP request."""
    dimensions = {
        "Method": method,
        "Path": _normalize_path(path),
        "StatusCode": str(status_code),
    }

    get_metrics().emit_metrics(
        metrics=[
            {"MetricName": "RequestCount", "Value": 1, "Unit": "Count"},
            {
                "MetricName": "RequestDuration",
                "Value": duration_ms,
                "Unit": "Milliseconds",
            },
        ],
        dimensions=dimensions,
        metadata={"request_path": path, **metadata},
    )


def emit_error(
    error_code: str,
    status_code: int,
    path: str,
    method: str,
    **metadata: Any,
) -> None:
    """Emit error metrics.

    Args:
        error_code: Application error code
        status_code: HTTP status code
        path: Request path
        method: HTTP method
        **metadata: Additional metadata
    """
    if status_code >= 500:
        severity = "server_error"
    elif status_code >= 400:
        severity = "client_error"
    else:
        severity = "unknown"

    dimensions = {
        "ErrorCode": error_code,
        "StatusCode": str(status_code),
        "Severity": severity,
        "Method": method,
        "Path": _normalize_path(path),
    }

    get_metrics().emit_metrics(
        metrics=[{"MetricName": "ErrorCount", "Value": 1, "Unit": "Count"}],
        dimensions=dimensions,
        metadata={"request_path": path, **metadata},
    )


def emit_ledger_event(
    entity_type: str,
    action: str,
    amount: Any = None,
    **metadata: Any,
) -> None:
    """Emit a ledger business event (contribution/expense created, approved...).

    The amount, when given, is attached as a second metric so dashboards can
    chart both volume and value per action.
    """
    metrics_list: list[dict[str, Any]] = [
        {"MetricName": "LedgerEventCount", "Value": 1, "Unit": "Count"},
    ]
    if amount is not None:
        metrics_list.append(
            {"MetricName": "LedgerEventAmount", "Value": float(amount), "Unit": "None"}
        )

    get_metrics().emit_metrics(
        metrics=metrics_list,
        dimensions={"EntityType": entity_type, "Action": action},
        metadata=metadata,
    )


def _normalize_path(path: str) -> str:
    """Replace UUIDs and numeric IDs in a path with placeholders."""
    path = re.sub(
        r"/[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
        "/{id}",
        path,
        flags=re.IGNORECASE,
    )
    path = re.sub(r"/\d+", "/{id}", path)
    return path
