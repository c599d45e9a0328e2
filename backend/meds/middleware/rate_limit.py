"""
MEDS Backend — Login Rate Limiting Middleware
===============================================

What:  Per-IP sliding window limit on the password login endpoint.
How:   Keeps each client IP's recent login attempt timestamps in memory;
       once an IP has `login_rate_limit_requests` attempts inside the last
       `login_rate_limit_window` seconds, further attempts get 429 with a
       Retry-After header until the oldest attempt leaves the window.
Who:   Applied to every request, but only POSTs to RATE_LIMITED_PATHS count.

Sliding window:
    1. Drop the IP's timestamps older than the window
    2. If the remaining count is at the limit, reject
    3. Otherwise record this attempt and pass the request on

State is per process. A clinic runs one uvicorn worker, which is what this
is sized for; with several workers each enforces its own limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from meds.config import settings
from meds.exceptions import RateLimitExceededError
from meds.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

RATE_LIMITED_PATHS = {"/api/collections/users/auth-with-password"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "POST" or request.url.path not in RATE_LIMITED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = settings.login_rate_limit_window
        window_start = now - window

        attempts = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = attempts

        if len(attempts) >= settings.login_rate_limit_requests:
            retry_after = int(attempts[0] + window - now) + 1
            logger.warning(
                "Login rate limit exceeded for IP %s: %d attempts in %ds window",
                client_ip, len(attempts), window,
            )
            error = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=error.status_code,
                content={
                    "error": error.error_code,
                    "message": error.message,
                    "details": error.context,
                    "request_id": request_id_var.get("") or None,
                },
                headers={"Retry-After": str(retry_after)},
            )

        attempts.append(now)
        self._cleanup_inactive_ips(window_start)
        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
