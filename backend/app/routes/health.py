"""
Site Content API — Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer health checks.
How:   Checks both external collaborators — the database and the object
       store — with the cheapest call each offers.

Status levels:
    - healthy:   database and object store reachable (HTTP 200)
    - degraded:  object store unreachable; reads still work (HTTP 200)
    - unhealthy: database unreachable; nothing works (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.dependencies import get_object_store
from app.schemas.content import HealthResponse
from app.services.object_store import ObjectStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(store: ObjectStore = Depends(get_object_store)):
    """
    Check the database (SELECT 1) and the object store, return aggregate status.
    """
    db_status = "connected"
    storage_status = "available"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    try:
        if not await store.health_check():
            storage_status = "unavailable"
    except Exception as e:
        storage_status = "unavailable"
        logger.warning("Health check: object store unreachable: %s", str(e))
    if storage_status != "available" and overall == "healthy":
        overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
