"""HTTP middleware: timeout, request context (request/correlation IDs), security headers.

Applied in the main app; order matters (first added = outermost).
"""

from classconnect.middleware.request_context import RequestContextMiddleware
from classconnect.middleware.security_headers import SecurityHeadersMiddleware
from classconnect.middleware.timeout import TimeoutMiddleware

__all__ = [
    "RequestContextMiddleware",
    "SecurityHeadersMiddleware",
    "TimeoutMiddleware",
]
