"""Request context middleware (request ID + correlation ID).

Forwards or generates X-Request-ID and X-Correlation-ID, echoes both on the
response, and exposes the request ID to log records for the duration of the
request. Client-provided values are sanitized to prevent log injection.
Uses raw ASGI (no BaseHTTPMiddleware) for production-safe streaming.
"""

import re
import uuid
from typing import Callable

from classconnect.shared.telemetry.logging import request_id_var

ID_MAX_LENGTH = 64
_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1," + str(ID_MAX_LENGTH) + r"}$")


def _get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive). Headers are (bytes, bytes)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def sanitize_id(raw: str | None, fallback: str | None = None) -> str:
    """Return raw if it is a safe identifier, else fallback, else a new UUID."""
    if raw and _ID_PATTERN.match(raw.strip()):
        return raw.strip()
    return fallback or str(uuid.uuid4())


def RequestContextMiddleware(
    app: Callable,
    request_id_header: str = "X-Request-ID",
    correlation_id_header: str = "X-Correlation-ID",
) -> Callable:
    """Attach request and correlation IDs to scope state, logs and response. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = sanitize_id(_get_header(scope, request_id_header))
        # Correlation falls back to the request ID when the client sends none.
        correlation_id = sanitize_id(
            _get_header(scope, correlation_id_header), fallback=request_id
        )
        state = scope.setdefault("state", {})
        state["request_id"] = request_id
        state["correlation_id"] = correlation_id
        extra = [
            (request_id_header.encode(), request_id.encode()),
            (correlation_id_header.encode(), correlation_id.encode()),
        ]

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = list(message.get("headers", [])) + extra
            await send(message)

        token = request_id_var.set(request_id)
        try:
            await app(scope, receive, send_wrapper)
        finally:
            request_id_var.reset(token)

    return asgi_app
