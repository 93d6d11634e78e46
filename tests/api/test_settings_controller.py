"""
API tests for the settings endpoints.
"""

import pytest
from fastapi import status
from httpx import AsyncClient


class TestSettingsController:
    """Test cases for /api/settings."""

    @pytest.mark.asyncio
    async def test_get_settings_without_key(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/settings")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"has_api_key": False, "created_at": None, "updated_at": None}

    @pytest.mark.asyncio
    async def test_store_api_key(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/settings/api-key", json={"api_key": "sk-secret"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["has_api_key"] is True
        assert "sk-secret" not in response.text

        settings_response = await authenticated_client.get("/api/settings")
        assert settings_response.json()["has_api_key"] is True

    @pytest.mark.asyncio
    async def test_store_blank_api_key(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/settings/api-key", json={"apiKey": "  "})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_delete_api_key(self, authenticated_client: AsyncClient):
        await authenticated_client.post("/api/settings/api-key", json={"apiKey": "sk-secret"})

        response = await authenticated_client.delete("/api/settings/api-key")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == {"deleted": True}
        again = await authenticated_client.delete("/api/settings/api-key")
        assert again.json()["data"] == {"deleted": False}

    @pytest.mark.asyncio
    async def test_settings_unauthorized(self, client: AsyncClient):
        response = await client.get("/api/settings")

        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
