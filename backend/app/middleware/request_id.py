"""
Request ID middleware for correlation tracking.

Reuses the client's X-Request-ID header or generates a UUID, stores it in
``request.state.request_id`` and echoes it in the response headers.
"""

import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Client ids outside this shape are replaced, so they can't pollute logs
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Example:
        app.add_middleware(RequestIDMiddleware)

    Usage in routes:
        @router.get("/example")
        async def example(request: Request):
            logger.info("Processing", extra={"request_id": request.state.request_id})
    """

    header_name = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name)
        if not request_id or not _VALID_REQUEST_ID.match(request_id):
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response
