"""Tests for health check endpoints."""

import httpx
import pytest
from httpx import AsyncClient

from app.config import WhatsAppConfig
from app.main import app
from app.services.whatsapp_service import WhatsAppClient, get_whatsapp_client


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_ping(client: AsyncClient) -> None:
    response = await client.get("/api/v1/ping")
    assert response.status_code == 200
    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_detailed_health_reports_gateway_instance(client: AsyncClient, gateway) -> None:
    gateway.status_code = 200
    gateway.payload = [{"instance": {"instanceName": "clinic", "status": "open"}}]

    response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["whatsapp"] == "healthy"
    assert gateway.requests[0].url.path == "/instance/fetchInstances"


@pytest.mark.asyncio
async def test_detailed_health_degraded_without_instance(client: AsyncClient, gateway) -> None:
    gateway.fail_with(401, "Unauthorized")

    response = await client.get("/api/v1/health/detailed")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["whatsapp"] == "unhealthy"


@pytest.mark.asyncio
async def test_detailed_health_without_api_key(client: AsyncClient, gateway) -> None:
    unconfigured = WhatsAppClient(
        WhatsAppConfig(base_url="http://gateway.test", api_key="", instance_name="clinic"),
        transport=httpx.MockTransport(gateway.handler),
    )
    app.dependency_overrides[get_whatsapp_client] = lambda: unconfigured

    response = await client.get("/api/v1/health/detailed")

    assert response.json()["whatsapp"] == "not_configured"
    assert response.json()["status"] == "healthy"
    assert gateway.requests == []
