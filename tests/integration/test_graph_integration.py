"""
Integration tests against a live graph store.

Set NEO4J_TEST_URI (and NEO4J_USER / NEO4J_PASSWORD, or NEO4J_AUTH_ENABLED=false
for Memgraph) to run them. The target database is wiped before each test.
"""

import os
from collections.abc import AsyncGenerator
from datetime import datetime

import pytest
import pytest_asyncio

from services.connection_analyzer.engine import RecommendationEngine
from services.connection_analyzer.models import StrategyKind
from services.graph_sync.events import Operation
from services.graph_sync.schema import apply_schema
from services.graph_sync.translators import EntityTranslator, build_translators
from shared.config.settings import Neo4jSettings, RecommendationSettings
from shared.database.neo4j import Neo4jClient


pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.getenv("NEO4J_TEST_URI"), reason="NEO4J_TEST_URI not set"),
]


@pytest_asyncio.fixture
async def graph() -> AsyncGenerator[Neo4jClient, None]:
    client = Neo4jClient(Neo4jSettings(uri_override=os.environ["NEO4J_TEST_URI"]))
    await client.connect(attempts=3, backoff_seconds=1.0)
    await client.run_query("MATCH (n) DETACH DELETE n")
    await apply_schema(client)
    yield client
    await client.run_query("MATCH (n) DETACH DELETE n")
    await client.close()


@pytest.fixture
def translators(graph: Neo4jClient) -> dict[str, EntityTranslator]:
    return build_translators(graph)


async def _seed_partners(translators: dict[str, EntityTranslator]) -> None:
    for user_id in (7, 8):
        await translators["users"].apply(
            Operation.CREATE, None, {"id": user_id, "first_name": f"User{user_id}", "email": f"u{user_id}@ex.com"}
        )
    await translators["businesses"].apply(
        Operation.CREATE,
        None,
        {
            "id": 1,
            "operator_user_id": 7,
            "name": "Acme Analytics",
            "business_type": "Technology",
            "business_category": "B2B",
            "business_phase": "Growth",
        },
    )
    await translators["businesses"].apply(
        Operation.CREATE,
        None,
        {
            "id": 2,
            "operator_user_id": 8,
            "name": "Beta Shop",
            "business_type": "Technology",
            "business_category": "B2C",
            "business_phase": "Mature",
        },
    )
    await translators["business_connections"].apply(
        Operation.CREATE,
        None,
        {
            "initiating_business_id": 1,
            "receiving_business_id": 2,
            "connection_type": "Partnership",
            "status": "active",
        },
    )


async def _count(graph: Neo4jClient, query: str) -> int:
    records = await graph.run_query(query)
    return records[0]["n"]


class TestTranslatorsLive:
    """Graph state produced by translators."""

    @pytest.mark.asyncio
    async def test_upsert_is_idempotent(
        self,
        graph: Neo4jClient,
        translators: dict[str, EntityTranslator],
    ) -> None:
        """Test replaying the same events leaves one node and one edge."""
        await _seed_partners(translators)
        await _seed_partners(translators)

        assert await _count(graph, "MATCH (b:Business) RETURN count(b) AS n") == 2
        assert await _count(graph, "MATCH ()-[r:OPERATES]->() RETURN count(r) AS n") == 2
        assert await _count(graph, "MATCH ()-[r:CONNECTS_TO]->() RETURN count(r) AS n") == 1

    @pytest.mark.asyncio
    async def test_operator_change_moves_edge(
        self,
        graph: Neo4jClient,
        translators: dict[str, EntityTranslator],
    ) -> None:
        await _seed_partners(translators)

        await translators["businesses"].apply(
            Operation.UPDATE, None, {"id": 2, "operator_user_id": 7, "name": "Beta Shop"}
        )

        records = await graph.run_query("MATCH (u:User)-[:OPERATES]->(:Business {id: 2}) RETURN u.id AS id")
        assert records == [{"id": 7}]

    @pytest.mark.asyncio
    async def test_delete_removes_node_and_edges(
        self,
        graph: Neo4jClient,
        translators: dict[str, EntityTranslator],
    ) -> None:
        await _seed_partners(translators)

        await translators["businesses"].apply(Operation.DELETE, {"id": 2}, None)

        assert await _count(graph, "MATCH (b:Business {id: 2}) RETURN count(b) AS n") == 0
        assert await _count(graph, "MATCH ()-[r:CONNECTS_TO]->() RETURN count(r) AS n") == 0

    @pytest.mark.asyncio
    async def test_bulk_and_stream_encodings_converge(
        self,
        graph: Neo4jClient,
        translators: dict[str, EntityTranslator],
    ) -> None:
        """Test a bulk-loaded row and its replayed change event produce the same attributes."""
        await translators["users"].apply(
            Operation.CREATE, None, {"id": 9, "active": True, "created_at": datetime(2024, 3, 1, 10, 0)}
        )
        first = await graph.run_query("MATCH (u:User {id: 9}) RETURN properties(u) AS props")

        await translators["users"].apply(
            Operation.UPDATE, None, {"id": 9, "active": 1, "created_at": 1709287200000}
        )
        second = await graph.run_query("MATCH (u:User {id: 9}) RETURN properties(u) AS props")

        assert first == second


class TestRecommendationsLive:
    """End-to-end recommendations over translated data."""

    @pytest.mark.asyncio
    async def test_complementary_partner(
        self,
        graph: Neo4jClient,
        translators: dict[str, EntityTranslator],
    ) -> None:
        await _seed_partners(translators)
        engine = RecommendationEngine(graph, RecommendationSettings())

        candidates = await engine.get_recommendations(1, StrategyKind.COMPLEMENTARY)

        assert len(candidates) == 1
        top = candidates[0]
        assert top.business.id == 2
        assert top.score == 0.9
        assert "Current connection status: active" in top.compatibility_factors

    @pytest.mark.asyncio
    async def test_analysis_counts_both_directions(
        self,
        graph: Neo4jClient,
        translators: dict[str, EntityTranslator],
    ) -> None:
        await _seed_partners(translators)
        engine = RecommendationEngine(graph, RecommendationSettings())

        analysis = await engine.get_connection_analysis(2)

        assert analysis.total_connections == 1
        assert analysis.active_connections == 1
        assert analysis.connection_strength == "Strong"
