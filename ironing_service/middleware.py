"""
HTTP middleware for the Ironing Service.

RequestIDMiddleware tags every request with an ID (taken from the
X-Request-ID header when the caller sends one) and echoes it back in the
response. While the request runs the ID is also in
``logging_config.current_request_id``, which stamps it on every log line.
"""

import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .logging_config import current_request_id

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Adds a unique request ID to each request.

    The ID is available in request.state.request_id and returned in the
    X-Request-ID header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = current_request_id.set(request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.debug("%s %s -> %s", request.method, request.url.path, response.status_code)
        finally:
            current_request_id.reset(token)
        return response
