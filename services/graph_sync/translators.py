"""
Entity Translators
==================

One translator per mirrored table. Each turns a row image into a single
idempotent Cypher mutation:

- users        -> (:User)
- skills       -> (:Skill)
- businesses   -> (:Business), (:User)-[:OPERATES]->(:Business)
- projects     -> (:Project), (:User)-[:MANAGES]->(:Project),
                  (:Business)-[:HAS_PROJECT]->(:Project)
- business_connections -> (:Business)-[:CONNECTS_TO]->(:Business)
- user_skills  -> (:User)-[:HAS_SKILL]->(:Skill)
- project_skills -> (:Project)-[:REQUIRES_SKILL]->(:Skill)

Relationship-bearing statements MATCH their endpoints first, so a
missing endpoint makes the whole statement a no-op; the translator then
raises EndpointMissingError instead of leaving half an upsert behind.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar

from neo4j.exceptions import DriverError, Neo4jError

from services.graph_sync.errors import EndpointMissingError, TranslatorApplyError
from services.graph_sync.events import Operation
from services.graph_sync.records import (
    BusinessConnectionKey,
    BusinessConnectionRecord,
    BusinessRecord,
    IdKey,
    ProjectRecord,
    ProjectSkillKey,
    ProjectSkillRecord,
    RowRecord,
    SkillRecord,
    UserRecord,
    UserSkillKey,
    UserSkillRecord,
)
from shared.database.neo4j import Neo4jClient
from shared.logging import get_logger


logger = get_logger(__name__)


class ApplyOutcome(str, Enum):
    """What a translator did with a change event."""

    UPSERTED = "upserted"
    DELETED = "deleted"
    SKIPPED = "skipped"


# Bulk-load dependency order: independent nodes, then dependent nodes,
# then association tables
MIRRORED_TABLES: tuple[str, ...] = (
    "users",
    "skills",
    "businesses",
    "projects",
    "business_connections",
    "user_skills",
    "project_skills",
)


# =============================================================================
# Base Translator
# =============================================================================


class EntityTranslator(ABC):
    """
    Applies change events for one table to the graph.

    Args:
        graph: Connected graph client
    """

    table: ClassVar[str]
    record_type: ClassVar[type[RowRecord]]
    key_type: ClassVar[type[RowRecord]]

    def __init__(self, graph: Neo4jClient) -> None:
        self._graph = graph

    async def apply(
        self,
        op: Operation,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
    ) -> ApplyOutcome:
        """
        Apply one change to the graph.

        Args:
            op: Normalized operation
            before: Row image before the change (deletes)
            after: Row image after the change (creates/updates)

        Returns:
            ApplyOutcome

        Raises:
            TranslatorApplyError: If the change could not be applied
        """
        if op is Operation.DELETE:
            if before is None:
                logger.debug("translator_skipped", table=self.table, op=op.value, reason="no_before_image")
                return ApplyOutcome.SKIPPED
            key = self.key_type.from_row(self.table, before)
            await self._delete(key)
            return ApplyOutcome.DELETED

        if after is None:
            logger.debug("translator_skipped", table=self.table, op=op.value, reason="no_after_image")
            return ApplyOutcome.SKIPPED
        record = self.record_type.from_row(self.table, after)
        await self._upsert(record)
        return ApplyOutcome.UPSERTED

    @abstractmethod
    async def _upsert(self, record: Any) -> None:
        """Merge the row into the graph."""

    @abstractmethod
    async def _delete(self, key: Any) -> None:
        """Remove the row's node or edge from the graph."""

    async def _write(
        self,
        query: str,
        parameters: dict[str, Any],
        record: RowRecord,
    ) -> list[dict[str, Any]]:
        try:
            return await self._graph.run_write_query(query, parameters)
        except (Neo4jError, DriverError) as e:
            raise TranslatorApplyError(self.table, f"graph write failed: {e}", key=record.key()) from e

    async def _write_with_endpoints(
        self,
        query: str,
        parameters: dict[str, Any],
        record: RowRecord,
        endpoints: str,
    ) -> None:
        records = await self._write(query, parameters, record)
        if not records:
            raise EndpointMissingError(
                self.table,
                f"endpoint not in graph yet ({endpoints})",
                key=record.key(),
            )


class NodeTranslator(EntityTranslator):
    """Translator for tables that map to a single node label."""

    label: ClassVar[str]

    async def _upsert(self, record: RowRecord) -> None:
        query = f"""
        MERGE (n:{self.label} {{id: $id}})
        SET n += $props
        """
        await self._write(query, {"id": record.key()["id"], "props": record.to_graph_properties()}, record)

    async def _delete(self, key: IdKey) -> None:
        query = f"""
        MATCH (n:{self.label} {{id: $id}})
        DETACH DELETE n
        """
        await self._write(query, {"id": key.id}, key)


# =============================================================================
# Node Tables
# =============================================================================


class UserTranslator(NodeTranslator):
    table = "users"
    label = "User"
    record_type = UserRecord
    key_type = IdKey


class SkillTranslator(NodeTranslator):
    table = "skills"
    label = "Skill"
    record_type = SkillRecord
    key_type = IdKey


class BusinessTranslator(NodeTranslator):
    """Business node plus its single OPERATES edge."""

    table = "businesses"
    label = "Business"
    record_type = BusinessRecord
    key_type = IdKey

    UPSERT = """
    MATCH (u:User {id: $operatorId})
    MERGE (b:Business {id: $id})
    SET b += $props
    WITH u, b
    OPTIONAL MATCH (other:User)-[old:OPERATES]->(b)
    WHERE other <> u
    WITH u, b, collect(old) AS stale
    FOREACH (r IN stale | DELETE r)
    MERGE (u)-[:OPERATES]->(b)
    RETURN b.id AS id
    """

    async def _upsert(self, record: BusinessRecord) -> None:
        await self._write_with_endpoints(
            self.UPSERT,
            {
                "id": record.id,
                "operatorId": record.operator_user_id,
                "props": record.to_graph_properties(),
            },
            record,
            endpoints=f"User {record.operator_user_id}",
        )


class ProjectTranslator(NodeTranslator):
    """Project node plus its MANAGES edge and optional HAS_PROJECT edge."""

    table = "projects"
    label = "Project"
    record_type = ProjectRecord
    key_type = IdKey

    UPSERT = """
    MATCH (m:User {id: $managerId})
    OPTIONAL MATCH (owner:Business {id: $businessId})
    WITH m, owner
    WHERE $businessId IS NULL OR owner IS NOT NULL
    MERGE (p:Project {id: $id})
    SET p += $props
    WITH m, owner, p
    OPTIONAL MATCH (otherManager:User)-[oldManages:MANAGES]->(p)
    WHERE otherManager <> m
    WITH m, owner, p, collect(oldManages) AS staleManages
    FOREACH (r IN staleManages | DELETE r)
    MERGE (m)-[:MANAGES]->(p)
    WITH owner, p
    OPTIONAL MATCH (otherOwner:Business)-[oldOwns:HAS_PROJECT]->(p)
    WHERE owner IS NULL OR otherOwner <> owner
    WITH owner, p, collect(oldOwns) AS staleOwns
    FOREACH (r IN staleOwns | DELETE r)
    FOREACH (b IN CASE WHEN owner IS NULL THEN [] ELSE [owner] END |
        MERGE (b)-[:HAS_PROJECT]->(p)
    )
    RETURN p.id AS id
    """

    async def _upsert(self, record: ProjectRecord) -> None:
        endpoints = f"User {record.managed_by_user_id}"
        if record.business_id is not None:
            endpoints += f", Business {record.business_id}"
        await self._write_with_endpoints(
            self.UPSERT,
            {
                "id": record.id,
                "managerId": record.managed_by_user_id,
                "businessId": record.business_id,
                "props": record.to_graph_properties(),
            },
            record,
            endpoints=endpoints,
        )


# =============================================================================
# Association Tables
# =============================================================================


class UserSkillTranslator(EntityTranslator):
    table = "user_skills"
    record_type = UserSkillRecord
    key_type = UserSkillKey

    UPSERT = """
    MATCH (u:User {id: $userId}), (s:Skill {id: $skillId})
    MERGE (u)-[r:HAS_SKILL]->(s)
    SET r += $props
    RETURN u.id AS userId
    """

    DELETE = """
    MATCH (:User {id: $userId})-[r:HAS_SKILL]->(:Skill {id: $skillId})
    DELETE r
    """

    async def _upsert(self, record: UserSkillRecord) -> None:
        await self._write_with_endpoints(
            self.UPSERT,
            {"userId": record.user_id, "skillId": record.skill_id, "props": record.to_graph_properties()},
            record,
            endpoints=f"User {record.user_id}, Skill {record.skill_id}",
        )

    async def _delete(self, key: UserSkillKey) -> None:
        await self._write(self.DELETE, {"userId": key.user_id, "skillId": key.skill_id}, key)


class ProjectSkillTranslator(EntityTranslator):
    table = "project_skills"
    record_type = ProjectSkillRecord
    key_type = ProjectSkillKey

    UPSERT = """
    MATCH (p:Project {id: $projectId}), (s:Skill {id: $skillId})
    MERGE (p)-[r:REQUIRES_SKILL]->(s)
    SET r += $props
    RETURN p.id AS projectId
    """

    DELETE = """
    MATCH (:Project {id: $projectId})-[r:REQUIRES_SKILL]->(:Skill {id: $skillId})
    DELETE r
    """

    async def _upsert(self, record: ProjectSkillRecord) -> None:
        await self._write_with_endpoints(
            self.UPSERT,
            {"projectId": record.project_id, "skillId": record.skill_id, "props": record.to_graph_properties()},
            record,
            endpoints=f"Project {record.project_id}, Skill {record.skill_id}",
        )

    async def _delete(self, key: ProjectSkillKey) -> None:
        await self._write(self.DELETE, {"projectId": key.project_id, "skillId": key.skill_id}, key)


class BusinessConnectionTranslator(EntityTranslator):
    """CONNECTS_TO keyed on (initiating, receiving, connectionType)."""

    table = "business_connections"
    record_type = BusinessConnectionRecord
    key_type = BusinessConnectionKey

    UPSERT = """
    MATCH (b1:Business {id: $initiatingId}), (b2:Business {id: $receivingId})
    MERGE (b1)-[r:CONNECTS_TO {connectionType: $connectionType}]->(b2)
    SET r += $props
    RETURN b1.id AS initiatingId
    """

    DELETE = """
    MATCH (:Business {id: $initiatingId})-[r:CONNECTS_TO {connectionType: $connectionType}]->(:Business {id: $receivingId})
    DELETE r
    """

    @staticmethod
    def _key_params(key: BusinessConnectionKey) -> dict[str, Any]:
        return {
            "initiatingId": key.initiating_business_id,
            "receivingId": key.receiving_business_id,
            "connectionType": key.connection_type,
        }

    async def _upsert(self, record: BusinessConnectionRecord) -> None:
        await self._write_with_endpoints(
            self.UPSERT,
            {**self._key_params(record), "props": record.to_graph_properties()},
            record,
            endpoints=f"Business {record.initiating_business_id}, Business {record.receiving_business_id}",
        )

    async def _delete(self, key: BusinessConnectionKey) -> None:
        await self._write(self.DELETE, self._key_params(key), key)


# =============================================================================
# Registry
# =============================================================================

_TRANSLATOR_TYPES: tuple[type[EntityTranslator], ...] = (
    UserTranslator,
    SkillTranslator,
    BusinessTranslator,
    ProjectTranslator,
    BusinessConnectionTranslator,
    UserSkillTranslator,
    ProjectSkillTranslator,
)


def build_translators(graph: Neo4jClient) -> dict[str, EntityTranslator]:
    """Create one translator per mirrored table, keyed by table name."""
    return {translator_type.table: translator_type(graph) for translator_type in _TRANSLATOR_TYPES}
