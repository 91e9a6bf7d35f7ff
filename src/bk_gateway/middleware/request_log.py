"""Request logging middleware.

Assigns each request an id (request.state.request_id, echoed in the
X-Request-ID header and the response envelope) and logs one line per request:

    INFO [POST] /api/v1/escrow/timed-trades → 200 (23ms) req_a1b2c3d4e5f6

Unhandled exceptions are logged with the same id before propagating.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.bk_common.response import new_request_id

logger = logging.getLogger("bk.request")


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s failed after %.0fms %s",
                request.method,
                request.url.path,
                (time.perf_counter() - start) * 1000,
                request_id,
            )
            raise

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
            request_id,
        )
        return response
