"""Tests for the connection analyzer HTTP API."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from services.connection_analyzer.errors import InvalidIdentifierError, QueryNotFoundError
from services.connection_analyzer.models import (
    BusinessInfo,
    ConnectionAnalysis,
    RequesterKind,
    ScoredCandidate,
    StrategyKind,
    StrategyOutcome,
    UserInfo,
)
from services.connection_analyzer.routes.connections import parse_requester_id


def _candidate() -> ScoredCandidate:
    return ScoredCandidate(
        type="COMPLEMENTARY_PARTNER",
        score=0.9,
        reason="Complementary business types: Technology + Technology",
        business=BusinessInfo(id=2, name="Beta Shop", business_type="Technology", business_category="B2C"),
        user=UserInfo(id=8, email="op8@example.com"),
        compatibility_factors=["Business type compatibility: 90%", "Current connection status: active"],
    )


class TestParseRequesterId:
    """Tests for path identifier parsing."""

    def test_valid(self) -> None:
        assert parse_requester_id("42") == 42

    @pytest.mark.parametrize("raw", ["abc", "-1", "0", "1.5", "", "٣", "9223372036854775808"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidIdentifierError):
            parse_requester_id(raw)


class TestStrategyEndpoints:
    """Tests for single-strategy endpoints."""

    @pytest.mark.asyncio
    async def test_complementary(
        self,
        connection_analyzer_client: AsyncClient,
        mock_engine: MagicMock,
    ) -> None:
        mock_engine.get_recommendations.return_value = [_candidate()]

        response = await connection_analyzer_client.get("/api/v1/connections/complementary/1")

        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "COMPLEMENTARY_PARTNERS"
        assert body["count"] == 1
        assert body["recommendations"][0]["score"] == 0.9
        assert body["recommendations"][0]["business"]["id"] == 2
        mock_engine.get_recommendations.assert_awaited_once_with(
            1, StrategyKind.COMPLEMENTARY, RequesterKind.BUSINESS
        )

    @pytest.mark.asyncio
    async def test_by_user(self, connection_analyzer_client: AsyncClient, mock_engine: MagicMock) -> None:
        """Test the by parameter reaches the engine."""
        response = await connection_analyzer_client.get("/api/v1/connections/alliance/7?by=user")

        assert response.status_code == 200
        assert response.json() == {"type": "ALLIANCE_PARTNERS", "count": 0, "recommendations": []}
        mock_engine.get_recommendations.assert_awaited_once_with(7, StrategyKind.ALLIANCE, RequesterKind.USER)

    @pytest.mark.asyncio
    async def test_invalid_identifier(
        self,
        connection_analyzer_client: AsyncClient,
        mock_engine: MagicMock,
    ) -> None:
        response = await connection_analyzer_client.get("/api/v1/connections/mastermind/abc")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "invalid_identifier"
        mock_engine.get_recommendations.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_by_parameter(
        self,
        connection_analyzer_client: AsyncClient,
        mock_engine: MagicMock,
    ) -> None:
        """Test an unknown requester kind gets the structured 400 body."""
        response = await connection_analyzer_client.get("/api/v1/connections/alliance/1?by=bogus")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "invalid_identifier"
        assert body["details"] == {"fields": ["query.by"]}
        mock_engine.get_recommendations.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found(self, connection_analyzer_client: AsyncClient, mock_engine: MagicMock) -> None:
        mock_engine.get_recommendations.side_effect = QueryNotFoundError("Business 404 not found")

        response = await connection_analyzer_client.get("/api/v1/connections/complementary/404")

        assert response.status_code == 404
        assert response.json()["error"] == "Business 404 not found"

    @pytest.mark.asyncio
    async def test_unexpected_error(
        self,
        connection_analyzer_client: AsyncClient,
        mock_engine: MagicMock,
    ) -> None:
        """Test graph failures become a structured 500."""
        mock_engine.get_recommendations.side_effect = RuntimeError("bolt connection lost")

        response = await connection_analyzer_client.get("/api/v1/connections/alliance/1")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert body["error_code"] == "internal_error"


class TestCombinedEndpoints:
    """Tests for the combined and analysis endpoints."""

    @pytest.mark.asyncio
    async def test_all_recommendations(
        self,
        connection_analyzer_client: AsyncClient,
        mock_engine: MagicMock,
    ) -> None:
        mock_engine.get_all_recommendations.return_value = (
            1,
            {
                StrategyKind.COMPLEMENTARY: StrategyOutcome(
                    kind=StrategyKind.COMPLEMENTARY,
                    type="COMPLEMENTARY_PARTNERS",
                    count=1,
                    recommendations=[_candidate()],
                ),
                StrategyKind.ALLIANCE: StrategyOutcome(
                    kind=StrategyKind.ALLIANCE,
                    type="ALLIANCE_PARTNERS",
                    count=0,
                    recommendations=[],
                    error="RuntimeError: graph down",
                ),
                StrategyKind.MASTERMIND: StrategyOutcome(
                    kind=StrategyKind.MASTERMIND,
                    type="MASTERMIND_PARTNERS",
                    count=0,
                    recommendations=[],
                ),
            },
        )

        response = await connection_analyzer_client.get("/api/v1/connections/recommendations/1")

        assert response.status_code == 200
        body = response.json()
        assert body["business_id"] == 1
        assert body["by"] == "business"
        assert body["recommendations"]["complementary"]["count"] == 1
        assert body["recommendations"]["alliance"]["error"] == "RuntimeError: graph down"
        assert body["recommendations"]["mastermind"]["error"] is None

    @pytest.mark.asyncio
    async def test_analysis(self, connection_analyzer_client: AsyncClient, mock_engine: MagicMock) -> None:
        mock_engine.get_connection_analysis.return_value = ConnectionAnalysis(
            business_id=1,
            business_name="Acme Analytics",
            total_connections=10,
            active_connections=9,
            connection_strength="Strong",
            skill_diversity="None",
        )

        response = await connection_analyzer_client.get("/api/v1/connections/analysis/7?by=user")

        assert response.status_code == 200
        body = response.json()
        assert body["requester_id"] == 7
        assert body["by"] == "user"
        assert body["analysis"]["connection_strength"] == "Strong"
        assert body["analysis"]["active_connections"] == 9


class TestHealth:
    """Tests for the health endpoint."""

    @pytest.mark.asyncio
    async def test_healthy(self, connection_analyzer_client: AsyncClient) -> None:
        response = await connection_analyzer_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "connection-analyzer"
        assert body["components"]["neo4j"]["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_degraded(self, connection_analyzer_client: AsyncClient, mock_graph: MagicMock) -> None:
        mock_graph.health_check.return_value = {"status": "unhealthy", "error": "refused"}

        response = await connection_analyzer_client.get("/health")

        assert response.json()["status"] == "degraded"
