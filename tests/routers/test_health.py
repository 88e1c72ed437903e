"""Tests for health endpoints."""

import pytest
from neo4j.exceptions import ServiceUnavailable


class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, api_client):
        response = await api_client.get("/health/live")
        assert response.json() == {"alive": True}

    @pytest.mark.asyncio
    async def test_ready_when_graph_disabled(self, api_client, override, disabled_graph_client):
        override(graph_client=disabled_graph_client)

        response = await api_client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"ready": True, "checks": {"neo4j": "disabled"}}

    @pytest.mark.asyncio
    async def test_ready_when_graph_connected(self, api_client, override, graph_client):
        override(graph_client=graph_client)

        response = await api_client.get("/health/ready")

        assert response.json()["checks"]["neo4j"] == "connected"

    @pytest.mark.asyncio
    async def test_not_ready_when_graph_unreachable(
        self, api_client, override, graph_client, mock_neo4j_driver
    ):
        mock_neo4j_driver.connectivity_error = ServiceUnavailable("connection refused")
        override(graph_client=graph_client)

        response = await api_client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["neo4j"] == "unreachable"
