"""
MEDS Backend — Health Check Route
===================================

What:  GET /health for docker-compose health checks and uptime monitors.
How:   Probes the database with `SELECT 1`; the service is "healthy" only
       when the database answers, since every API call needs it.

    healthy    database reachable        HTTP 200
    unhealthy  database unreachable      HTTP 503
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from meds import __version__
from meds.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Module load time is close enough to process start for uptime reporting
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        from meds.database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
