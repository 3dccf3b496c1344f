"""
Blog API — Health Check Route
==============================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the application's database handle and reports aggregate status.

Status levels:
    - healthy:   Database reachable (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from blog_api import __version__
from blog_api.schemas.post import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    """
    Check the health of the service and its database.

    SELECT 1 is enough to prove the pool can hand out a working connection.
    """
    database = request.app.state.database
    connected = await database.ping()
    if not connected:
        logger.warning("Health check: database unreachable")

    body = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(
        status_code=200 if connected else 503,
        content=body.model_dump(),
    )
