"""
MEDS Backend — Request ID Middleware
======================================

What:  Gives every request a short correlation ID and returns it in the
       `X-Request-ID` response header.
How:   Uses the client's `X-Request-ID` when one is sent, otherwise the first
       8 characters of a UUID4. The ID is kept in a ContextVar so the access
       log and the error handlers can include it without threading it through
       every call.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests in one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
