"""Tests for the recommendation engine."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from services.connection_analyzer.engine import RESOLVE_USER, RecommendationEngine
from services.connection_analyzer.errors import QueryNotFoundError
from services.connection_analyzer.models import (
    BusinessInfo,
    RequesterKind,
    ScoredCandidate,
    StrategyKind,
    UserInfo,
)
from shared.config.settings import RecommendationSettings


def _candidate(business_id: int) -> ScoredCandidate:
    return ScoredCandidate(
        type="COMPLEMENTARY_PARTNER",
        score=0.9,
        reason="test",
        business=BusinessInfo(id=business_id),
        user=UserInfo(id=1),
    )


@pytest.fixture
def engine(mock_graph: MagicMock) -> RecommendationEngine:
    mock_graph.run_query.return_value = [{"businessId": 1}]
    return RecommendationEngine(mock_graph, RecommendationSettings())


class TestResolveRequester:
    """Tests for requester resolution."""

    @pytest.mark.asyncio
    async def test_business(self, engine: RecommendationEngine, mock_graph: MagicMock) -> None:
        assert await engine.resolve_requester(1) == 1

        _, params = mock_graph.run_query.await_args.args
        assert params == {"requesterId": 1}

    @pytest.mark.asyncio
    async def test_user(self, engine: RecommendationEngine, mock_graph: MagicMock) -> None:
        """Test a user id resolves through OPERATES."""
        await engine.resolve_requester(7, RequesterKind.USER)

        query, _ = mock_graph.run_query.await_args.args
        assert query == RESOLVE_USER

    @pytest.mark.asyncio
    async def test_not_found(self, engine: RecommendationEngine, mock_graph: MagicMock) -> None:
        mock_graph.run_query.return_value = []

        with pytest.raises(QueryNotFoundError) as exc_info:
            await engine.get_recommendations(404, StrategyKind.ALLIANCE)

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == {"requester_id": 404, "by": "business"}


class TestAllRecommendations:
    """Tests for the combined request."""

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self, engine: RecommendationEngine) -> None:
        """Test one failing strategy does not affect the others."""
        engine._strategies[StrategyKind.COMPLEMENTARY].recommend = AsyncMock(return_value=[_candidate(2)])
        engine._strategies[StrategyKind.ALLIANCE].recommend = AsyncMock(
            side_effect=RuntimeError("graph down")
        )
        engine._strategies[StrategyKind.MASTERMIND].recommend = AsyncMock(return_value=[])

        business_id, outcomes = await engine.get_all_recommendations(1)

        assert business_id == 1
        assert outcomes[StrategyKind.COMPLEMENTARY].count == 1
        assert not outcomes[StrategyKind.COMPLEMENTARY].failed

        alliance = outcomes[StrategyKind.ALLIANCE]
        assert alliance.failed
        assert alliance.error == "RuntimeError: graph down"
        assert alliance.recommendations == []
        assert alliance.type == "ALLIANCE_PARTNERS"

        mastermind = outcomes[StrategyKind.MASTERMIND]
        assert not mastermind.failed
        assert mastermind.count == 0


class TestConnectionAnalysis:
    """Tests for connection analysis."""

    @pytest.mark.asyncio
    async def test_labels(self, engine: RecommendationEngine, mock_graph: MagicMock) -> None:
        mock_graph.run_query.side_effect = [
            [{"businessId": 1}],
            [
                {
                    "businessId": 1,
                    "businessName": "Acme Analytics",
                    "businessType": "Technology",
                    "businessPhase": "Growth",
                    "totalConnections": 10,
                    "activeConnections": 9,
                    "totalSkills": 5,
                    "techSkills": 4,
                    "businessSkills": 1,
                    "totalProjects": 3,
                    "activeProjects": 2,
                }
            ],
        ]

        analysis = await engine.get_connection_analysis(1)

        assert analysis.connection_strength == "Strong"
        assert analysis.skill_diversity == "Specialized"
        assert analysis.total_projects == 3
        _, params = mock_graph.run_query.await_args.args
        assert params == {"businessId": 1, "techCategory": "Technology", "businessCategory": "Business"}

    @pytest.mark.asyncio
    async def test_isolated_business(self, engine: RecommendationEngine, mock_graph: MagicMock) -> None:
        mock_graph.run_query.side_effect = [
            [{"businessId": 2}],
            [
                {
                    "businessId": 2,
                    "totalConnections": 0,
                    "activeConnections": 0,
                    "totalSkills": 0,
                    "techSkills": 0,
                    "businessSkills": 0,
                    "totalProjects": 0,
                    "activeProjects": 0,
                }
            ],
        ]

        analysis = await engine.get_connection_analysis(2)

        assert analysis.connection_strength == "None"
        assert analysis.skill_diversity == "None"
