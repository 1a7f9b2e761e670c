"""Health check endpoints."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.config import settings
from app.database import check_database_connection
from app.services.whatsapp_service import WhatsAppClient, get_whatsapp_client

logger = structlog.get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str


class DetailedHealthResponse(BaseModel):
    """Detailed health check response model."""

    status: str
    version: str
    environment: str
    database: str
    whatsapp: str = Field(..., description="healthy, unhealthy or not_configured")


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check(
    whatsapp: Annotated[WhatsAppClient, Depends(get_whatsapp_client)],
) -> DetailedHealthResponse:
    """
    Detailed health check with database and WhatsApp gateway status.

    The gateway is reported as ``not_configured`` when no API key is set.
    A configured gateway without the clinic instance degrades the overall
    status; scheduling itself keeps working.

    Returns:
        Detailed health status including dependencies
    """
    db_healthy = await check_database_connection()

    if not whatsapp.config.api_key:
        gateway = "not_configured"
    elif await whatsapp.check_instance():
        gateway = "healthy"
    else:
        gateway = "unhealthy"
        logger.warning("whatsapp_instance_unavailable", instance=whatsapp.config.instance_name)

    return DetailedHealthResponse(
        status="healthy" if db_healthy and gateway != "unhealthy" else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        whatsapp=gateway,
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
