"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from classconnect.shared.telemetry.logging import (
    get_logger,
    request_id_var,
    setup_logging,
)
from classconnect.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from classconnect.shared.telemetry.tracing import add_span_event, traced

__all__ = [
    "setup_logging",
    "request_id_var",
    "get_logger",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "traced",
    "add_span_event",
]
