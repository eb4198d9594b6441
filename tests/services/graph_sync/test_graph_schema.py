"""Tests for graph schema DDL."""

from unittest.mock import MagicMock

import pytest

from services.graph_sync.schema import (
    INDEXED_PROPERTIES,
    UNIQUE_KEYS,
    apply_schema,
    constraint_statements,
    index_statements,
)
from shared.config.settings import GraphDialect


class TestStatements:
    """Tests for dialect-specific statements."""

    def test_neo4j_is_idempotent(self) -> None:
        """Test Neo4j statements use IF NOT EXISTS."""
        statements = constraint_statements(GraphDialect.NEO4J) + index_statements(GraphDialect.NEO4J)

        assert all("IF NOT EXISTS" in s["query"] for s in statements)
        assert (
            "CREATE CONSTRAINT user_id_unique IF NOT EXISTS FOR (n:User) REQUIRE n.id IS UNIQUE"
            in [s["query"] for s in statements]
        )

    def test_memgraph_syntax(self) -> None:
        constraints = [s["query"] for s in constraint_statements(GraphDialect.MEMGRAPH)]
        indexes = [s["query"] for s in index_statements(GraphDialect.MEMGRAPH)]

        assert "CREATE CONSTRAINT ON (n:Skill) ASSERT n.id IS UNIQUE" in constraints
        assert "CREATE INDEX ON :Business(businessType)" in indexes

    def test_every_node_label_has_unique_key(self) -> None:
        assert {label for _, label, _ in UNIQUE_KEYS} == {"User", "Business", "Project", "Skill"}


class TestApplySchema:
    """Tests for schema application."""

    @pytest.mark.asyncio
    async def test_applies_everything(self, mock_graph: MagicMock) -> None:
        result = await apply_schema(mock_graph)

        assert result["constraints_applied"] == len(UNIQUE_KEYS)
        assert result["indexes_applied"] == len(INDEXED_PROPERTIES)
        assert mock_graph.run_query.await_count == len(UNIQUE_KEYS) + len(INDEXED_PROPERTIES)

    @pytest.mark.asyncio
    async def test_already_exists_counts_as_applied(self, mock_graph: MagicMock) -> None:
        mock_graph.dialect = GraphDialect.MEMGRAPH
        mock_graph.run_query.side_effect = RuntimeError("Constraint already exists")

        result = await apply_schema(mock_graph)

        assert result["constraints_failed"] == []
        assert result["indexes_failed"] == []

    @pytest.mark.asyncio
    async def test_failures_are_reported_not_raised(self, mock_graph: MagicMock) -> None:
        """Test schema errors become warnings."""
        mock_graph.run_query.side_effect = RuntimeError("permission denied")

        result = await apply_schema(mock_graph)

        assert result["constraints_applied"] == 0
        assert len(result["constraints_failed"]) == len(UNIQUE_KEYS)
        assert result["indexes_failed"][0]["error"] == "permission denied"
