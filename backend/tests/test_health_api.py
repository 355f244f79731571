"""Tests for health check endpoints"""

import pytest
from fastapi import status
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Liveness, dependency and metrics endpoints"""

    async def test_basic_health_check(self, async_client: AsyncClient):
        """Test GET /health endpoint"""
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["timestamp"].endswith("Z")

    async def test_detailed_health_check(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"database": "connected", "redis": "connected"}
        assert set(data["latency_ms"]) == {"language_model", "speech"}

    async def test_redis_down_is_degraded(self, async_client: AsyncClient, redis_mock):
        redis_mock.ping.side_effect = RedisConnectionError("connection refused")

        response = await async_client.get("/api/v1/health")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["services"]["redis"].startswith("disconnected")

    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "CrewCommand API"

    async def test_metrics_exposition(self, async_client: AsyncClient):
        response = await async_client.get("/metrics")

        assert response.status_code == status.HTTP_200_OK
        assert "authorization_decisions_total" in response.text
