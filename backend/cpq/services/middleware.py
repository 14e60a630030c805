"""
Per-request context for the CPQ costing service.

RequestContextMiddleware binds a request id for the lifetime of the request
(the caller's X-Request-ID when sent, else a fresh uuid4), echoes it back
with the elapsed time, and writes one access line per request. Server
errors are logged at WARNING so they stand out from routine traffic.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cpq.services.logging_config import request_id_var

logger = logging.getLogger("cpq-api.access")

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"
QUIET_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[PROCESS_TIME_HEADER] = str(elapsed_ms)
            if request.url.path not in QUIET_PATHS:
                level = logging.WARNING if response.status_code >= 500 else logging.INFO
                logger.log(
                    level,
                    "%s %s -> %d",
                    request.method, request.url.path, response.status_code,
                    extra={
                        "http_method": request.method,
                        "http_path": request.url.path,
                        "http_status": response.status_code,
                        "duration_ms": elapsed_ms,
                    },
                )
            return response
        finally:
            request_id_var.reset(token)
