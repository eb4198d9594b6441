"""
Recommendation Engine
=====================

Resolves requesters, runs strategies (singly or all three concurrently)
and computes the connection analysis.

Version: 0.1.0
"""

import asyncio

from services.connection_analyzer.errors import QueryNotFoundError
from services.connection_analyzer.models import (
    ConnectionAnalysis,
    RequesterKind,
    ScoredCandidate,
    StrategyKind,
    StrategyOutcome,
)
from services.connection_analyzer.scoring import connection_strength, skill_diversity
from services.connection_analyzer.strategies import STRATEGY_TYPES, RecommendationStrategy
from shared.config.settings import RecommendationSettings
from shared.database.neo4j import Neo4jClient
from shared.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Queries
# =============================================================================

RESOLVE_BUSINESS = """
MATCH (b:Business {id: $requesterId})
RETURN b.id AS businessId
"""

# A user operating several businesses is represented by the lowest id
RESOLVE_USER = """
MATCH (:User {id: $requesterId})-[:OPERATES]->(b:Business)
RETURN b.id AS businessId
ORDER BY b.id
LIMIT 1
"""

CONNECTION_ANALYSIS = """
MATCH (b:Business {id: $businessId})
OPTIONAL MATCH (u:User)-[:OPERATES]->(b)
WITH b, u
OPTIONAL MATCH (b)-[conn:CONNECTS_TO]-(:Business)
WITH b, u,
     count(DISTINCT conn) AS totalConnections,
     count(DISTINCT CASE WHEN conn.status = 'active' THEN conn END) AS activeConnections
OPTIONAL MATCH (u)-[:HAS_SKILL]->(s:Skill)
WITH b, u, totalConnections, activeConnections,
     count(DISTINCT s) AS totalSkills,
     count(DISTINCT CASE WHEN s.category = $techCategory THEN s END) AS techSkills,
     count(DISTINCT CASE WHEN s.category = $businessCategory THEN s END) AS businessSkills
OPTIONAL MATCH (b)-[:HAS_PROJECT]->(owned:Project)
WITH b, u, totalConnections, activeConnections, totalSkills, techSkills, businessSkills,
     collect(DISTINCT owned) AS ownedProjects
OPTIONAL MATCH (u)-[:MANAGES]->(managed:Project)
WITH b, totalConnections, activeConnections, totalSkills, techSkills, businessSkills,
     ownedProjects + [p IN collect(DISTINCT managed) WHERE NOT p IN ownedProjects] AS projects
RETURN b.id AS businessId,
       b.name AS businessName,
       b.businessType AS businessType,
       b.businessPhase AS businessPhase,
       totalConnections,
       activeConnections,
       totalSkills,
       techSkills,
       businessSkills,
       size(projects) AS totalProjects,
       size([p IN projects WHERE p.projectStatus = 'active']) AS activeProjects
"""


class RecommendationEngine:
    """
    Read-only recommendation and analysis engine over the partner graph.

    Args:
        graph: Connected graph client
        config: Recommendation settings
    """

    def __init__(self, graph: Neo4jClient, config: RecommendationSettings) -> None:
        self._graph = graph
        self._config = config
        self._strategies: dict[StrategyKind, RecommendationStrategy] = {
            kind: strategy_type(graph, max_results=config.max_results)
            for kind, strategy_type in STRATEGY_TYPES.items()
        }

    async def resolve_requester(
        self,
        requester_id: int,
        by: RequesterKind = RequesterKind.BUSINESS,
    ) -> int:
        """
        Map a requester identifier to its business id.

        Raises:
            QueryNotFoundError: If no matching business exists
        """
        query = RESOLVE_USER if by is RequesterKind.USER else RESOLVE_BUSINESS
        records = await self._graph.run_query(query, {"requesterId": requester_id})
        if not records:
            raise QueryNotFoundError(
                f"{by.value.capitalize()} {requester_id} not found",
                details={"requester_id": requester_id, "by": by.value},
            )
        return records[0]["businessId"]

    async def get_recommendations(
        self,
        requester_id: int,
        kind: StrategyKind,
        by: RequesterKind = RequesterKind.BUSINESS,
    ) -> list[ScoredCandidate]:
        """Run one strategy for a requester."""
        business_id = await self.resolve_requester(requester_id, by)
        return await self._strategies[kind].recommend(business_id)

    async def get_all_recommendations(
        self,
        requester_id: int,
        by: RequesterKind = RequesterKind.BUSINESS,
    ) -> tuple[int, dict[StrategyKind, StrategyOutcome]]:
        """
        Run every strategy concurrently.

        A failing strategy is reported through its outcome's error and
        never affects the others.

        Returns:
            (resolved business id, outcome per strategy)
        """
        business_id = await self.resolve_requester(requester_id, by)

        kinds = list(self._strategies)
        results = await asyncio.gather(
            *(self._strategies[kind].recommend(business_id) for kind in kinds),
            return_exceptions=True,
        )

        outcomes: dict[StrategyKind, StrategyOutcome] = {}
        for kind, result in zip(kinds, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.error(
                    "strategy_failed",
                    strategy=kind.value,
                    business_id=business_id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                outcomes[kind] = StrategyOutcome(
                    kind=kind,
                    type=kind.list_type,
                    count=0,
                    recommendations=[],
                    error=f"{type(result).__name__}: {result}",
                )
            else:
                outcomes[kind] = StrategyOutcome(
                    kind=kind,
                    type=kind.list_type,
                    count=len(result),
                    recommendations=result,
                )

        return business_id, outcomes

    async def get_connection_analysis(
        self,
        requester_id: int,
        by: RequesterKind = RequesterKind.BUSINESS,
    ) -> ConnectionAnalysis:
        """Aggregate connection, skill and project summary for a requester."""
        business_id = await self.resolve_requester(requester_id, by)

        records = await self._graph.run_query(
            CONNECTION_ANALYSIS,
            {
                "businessId": business_id,
                "techCategory": self._config.tech_skill_category,
                "businessCategory": self._config.business_skill_category,
            },
        )
        if not records:
            raise QueryNotFoundError(
                f"Business {business_id} not found",
                details={"business_id": business_id},
            )

        row = records[0]
        return ConnectionAnalysis(
            business_id=row["businessId"],
            business_name=row.get("businessName"),
            business_type=row.get("businessType"),
            business_phase=row.get("businessPhase"),
            total_connections=row["totalConnections"],
            active_connections=row["activeConnections"],
            total_skills=row["totalSkills"],
            tech_skills=row["techSkills"],
            business_skills=row["businessSkills"],
            total_projects=row["totalProjects"],
            active_projects=row["activeProjects"],
            connection_strength=connection_strength(row["totalConnections"], row["activeConnections"]),
            skill_diversity=skill_diversity(row["totalSkills"], row["techSkills"], row["businessSkills"]),
        )
