"""
Health check endpoint.

Used by container health checks, load balancers and the dashboard's
connectivity banner.

Returns status + DB connectivity so callers can distinguish between
"API down" and "API up but DB unreachable" (in which case the Overview
map is serving demo data).
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from app.core import database as db_module

logger = logging.getLogger(__name__)
router = APIRouter()

API_VERSION = "0.1.0"


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    database: str  # "connected" | "disconnected"
    environment: str


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check() -> HealthResponse:
    """
    Returns the liveness status of the API and its database connection.

    The API is healthy (HTTP 200) even when the database is disconnected.
    """
    from app.core.config import settings

    db_status = "disconnected"
    try:
        # Access via module reference so tests can patch db_module.db_client
        if db_module.db_client.client is not None:
            await db_module.db_client.client.admin.command("ping")
            db_status = "connected"
    except Exception as exc:
        logger.warning("DB ping failed: %s", exc)

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        database=db_status,
        environment=settings.environment,
    )
