"""
CaterHub Backend — Health Check Route
=======================================

What:  Liveness and database reachability for probes and load balancers.
How:   Runs `SELECT 1` through the app's Database. An unreachable database
       makes the instance unhealthy (503) since no endpoint but this one
       can work without it.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from caterhub import __version__
from caterhub.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Module-level: set once when the process imports the routes
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(request: Request):
    database_status = "connected"
    try:
        await request.app.state.db.ping()
    except Exception as e:
        database_status = "disconnected"
        logger.warning("Health check: database unreachable: %s", str(e))

    healthy = database_status == "connected"
    body = HealthResponse(
        success=healthy,
        message="API is running" if healthy else "Database unavailable",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        database=database_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if not healthy:
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body
