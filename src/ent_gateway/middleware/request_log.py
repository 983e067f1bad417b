"""Per-request access log.

Each request gets an id stored on request.state (picked up by the
ApiResponse envelope) and echoed back in the X-Request-ID header, so a
processor delivery or a client report can be matched to its log line:

    INFO [POST] /api/v1/billing/webhook/stripe → 200 (23ms) req_a1b2c3d4e5f6

Server errors are logged at WARNING; webhook 5xx means the processor will
redeliver.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.ent_common.response import new_request_id

logger = logging.getLogger("ent.request")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id

        started = time.perf_counter()
        response = await call_next(request)
        took_ms = (time.perf_counter() - started) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            took_ms,
            request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
