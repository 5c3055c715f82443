"""Request logging middleware.

One line per request on the "wm.request" logger: method, path (with the
period query, if any), status, latency and a request id. The id goes into
request.state for the ApiResponse envelope and back out as X-Request-ID.

Dashboard requests that miss the metrics cache run several aggregation
queries; anything slower than SLOW_REQUEST_MS is logged at WARNING so cache
misses on large books show up without per-query tracing.

    INFO [GET] /api/v1/dashboard/summary?year=2026 → 200 (41ms) req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings

logger = logging.getLogger("wm.request")


def _target(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s → unhandled error (%.0fms) %s",
                request.method,
                _target(request),
                (time.perf_counter() - start) * 1000,
                request_id,
            )
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        level = logging.WARNING if elapsed_ms >= settings.SLOW_REQUEST_MS else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            _target(request),
            response.status_code,
            elapsed_ms,
            request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response
