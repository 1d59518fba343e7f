"""
Request correlation middleware.

- Accepts X-Request-ID from the client or generates one
- Echoes it on the response
- Binds request_id (and, once resolved, the principal uid) into log records
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from hrportal.logging_config import get_logger, principal_uid_var, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a request ID to each request and log a one-line access record."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        request_token = request_id_var.set(request_id)
        principal_token = principal_uid_var.set(None)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id
            self._log(request, response, duration_ms)
            return response
        finally:
            request_id_var.reset(request_token)
            principal_uid_var.reset(principal_token)

    @staticmethod
    def _log(request: Request, response: Response, duration_ms: float) -> None:
        extra = {
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        }
        if duration_ms > SLOW_REQUEST_MS:
            logger.warning("Slow request", extra=extra)
        else:
            logger.debug("Request completed", extra=extra)
