"""
MEDS Backend — Middleware Package
===================================

Middleware chain (outermost first):
    Request → [Request ID] → [Access Log] → [Login Rate Limit] → [GZip] → [CORS] → Route

    Request ID is outermost so the access log line and any rate-limit or
    error response carry the same correlation ID.
"""
