"""
Security headers middleware.

Adds the OWASP-recommended response headers. The API only serves JSON and
the Swagger UI, so the default Content-Security-Policy allows the CDN
assets the docs pages load and nothing else.

References:
- OWASP Secure Headers Project: https://owasp.org/www-project-secure-headers/
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

DEFAULT_CSP = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https:; "
    "connect-src 'self'; "
    "frame-ancestors 'none'; "
    "base-uri 'self'; "
    "object-src 'none'"
)

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Example:
        app.add_middleware(SecurityHeadersMiddleware)
        app.add_middleware(SecurityHeadersMiddleware, hsts=True)  # behind TLS
    """

    def __init__(
        self,
        app,
        enable_csp: bool = True,
        csp_policy: Optional[str] = None,
        hsts: bool = False,
    ):
        super().__init__(app)
        self.enable_csp = enable_csp
        self.csp_policy = csp_policy or DEFAULT_CSP
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for header, value in STATIC_HEADERS.items():
            response.headers.setdefault(header, value)

        if self.enable_csp:
            response.headers.setdefault("Content-Security-Policy", self.csp_policy)

        if self.hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
