"""
MEDS Backend — Access Log Middleware
======================================

What:  One log line per HTTP request: method, path, status, duration,
       request ID and client IP.
How:   Times the downstream call and logs to the `meds.access` logger at a
       level chosen by status class (5xx ERROR, 4xx WARNING, else INFO).
       The structured fields also go in `extra` for log shippers.

Not logged: request bodies and Authorization headers (patient data and
bearer tokens). /health is skipped; container probes hit it every few
seconds.

Example line:
    GET /api/collections/patients/records 200 12.4ms [1f0c2a9b] from 10.0.0.7
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from meds.middleware.request_id import request_id_var

logger = logging.getLogger("meds.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
