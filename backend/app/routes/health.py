"""
BookBrief Backend — Health Check Route
========================================

What:  Liveness/readiness probe reporting the database and the summarizer.

Status levels:
    healthy    database reachable; summarizer available or in local mode
    degraded   database reachable; Gemini unreachable or circuit open
               (uploads still work, summaries fall back to local ones)
    unhealthy  database unreachable (HTTP 503)

Summarizer values:
    local         no GEMINI_API_KEY, the deterministic summarizer is used
    available     Gemini reachable
    unavailable   Gemini configured but unreachable
    circuit_open  too many recent Gemini failures
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app import __version__
from app.database import engine
from app.schemas.common import HealthResponse
from app.services.gemini_service import CircuitBreaker, gemini_provider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


async def _check_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "connected"
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return "disconnected"


async def _check_summarizer() -> str:
    if not gemini_provider.is_configured:
        return "local"
    if gemini_provider.circuit_breaker.state == CircuitBreaker.OPEN:
        return "circuit_open"
    return "available" if await gemini_provider.health_check() else "unavailable"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check():
    database = await _check_database()
    summarizer = await _check_summarizer()

    if database != "connected":
        overall = "unhealthy"
    elif summarizer in ("local", "available"):
        overall = "healthy"
    else:
        overall = "degraded"

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=database,
        summarizer=summarizer,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
