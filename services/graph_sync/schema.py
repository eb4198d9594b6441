"""
Graph Schema Constraints and Indexes
====================================

Uniqueness constraints on every node key and secondary indexes on the
attributes the recommendation queries filter on.

Both Neo4j 5 and Memgraph syntax are supported; the dialect comes from
NEO4J_DIALECT. Every statement is idempotent (Neo4j uses IF NOT EXISTS,
Memgraph reports "already exists", which is ignored).

Version: 0.1.0
"""

from typing import Any

from shared.config.settings import GraphDialect
from shared.database.neo4j import Neo4jClient
from shared.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Schema Elements
# =============================================================================

# (name, label, property)
UNIQUE_KEYS: list[tuple[str, str, str]] = [
    ("user_id_unique", "User", "id"),
    ("business_id_unique", "Business", "id"),
    ("project_id_unique", "Project", "id"),
    ("skill_id_unique", "Skill", "id"),
]

INDEXED_PROPERTIES: list[tuple[str, str, str]] = [
    ("user_email", "User", "email"),
    ("business_name", "Business", "name"),
    ("business_type", "Business", "businessType"),
    ("business_category", "Business", "businessCategory"),
    ("business_phase", "Business", "businessPhase"),
    ("skill_name", "Skill", "name"),
    ("skill_category", "Skill", "category"),
    ("project_status", "Project", "projectStatus"),
]


def constraint_statements(dialect: GraphDialect) -> list[dict[str, str]]:
    """Uniqueness constraint DDL for the given dialect."""
    statements = []
    for name, label, prop in UNIQUE_KEYS:
        if dialect is GraphDialect.MEMGRAPH:
            query = f"CREATE CONSTRAINT ON (n:{label}) ASSERT n.{prop} IS UNIQUE"
        else:
            query = f"CREATE CONSTRAINT {name} IF NOT EXISTS FOR (n:{label}) REQUIRE n.{prop} IS UNIQUE"
        statements.append({"name": name, "query": query})
    return statements


def index_statements(dialect: GraphDialect) -> list[dict[str, str]]:
    """Secondary index DDL for the given dialect."""
    statements = []
    for name, label, prop in INDEXED_PROPERTIES:
        if dialect is GraphDialect.MEMGRAPH:
            query = f"CREATE INDEX ON :{label}({prop})"
        else:
            query = f"CREATE INDEX {name} IF NOT EXISTS FOR (n:{label}) ON (n.{prop})"
        statements.append({"name": name, "query": query})
    return statements


# =============================================================================
# Schema Application
# =============================================================================


async def _apply_statements(
    graph: Neo4jClient,
    statements: list[dict[str, str]],
    kind: str,
) -> tuple[int, list[dict[str, str]]]:
    applied = 0
    failed: list[dict[str, str]] = []

    for statement in statements:
        try:
            await graph.run_query(statement["query"])
            applied += 1
            logger.debug(f"{kind}_applied", name=statement["name"])
        except Exception as e:
            error_msg = str(e)
            if "already exists" in error_msg.lower():
                applied += 1
                continue
            failed.append({"name": statement["name"], "error": error_msg})
            logger.warning(f"{kind}_failed", name=statement["name"], error=error_msg)

    return applied, failed


async def apply_schema(graph: Neo4jClient) -> dict[str, Any]:
    """
    Apply all schema constraints and indexes.

    Failures are logged as warnings and reported, never raised: merge
    upserts stay correct without them.

    Args:
        graph: Connected graph client

    Returns:
        Summary of applied schema elements
    """
    constraints_applied, constraints_failed = await _apply_statements(
        graph, constraint_statements(graph.dialect), "constraint"
    )
    indexes_applied, indexes_failed = await _apply_statements(
        graph, index_statements(graph.dialect), "index"
    )

    results = {
        "constraints_applied": constraints_applied,
        "constraints_failed": constraints_failed,
        "indexes_applied": indexes_applied,
        "indexes_failed": indexes_failed,
    }

    logger.info(
        "schema_applied",
        dialect=graph.dialect.value,
        constraints=constraints_applied,
        indexes=indexes_applied,
        errors=len(constraints_failed) + len(indexes_failed),
    )

    return results
