"""
Recommendation Strategies
=========================

Each strategy runs one read-only Cypher traversal that extracts candidate
features for a requester business, then scores, filters and ranks the
candidates with the rules in scoring.py.

Every candidate also carries the status of its CONNECTS_TO edge with the
requester (either direction); the status is informational and never
affects eligibility.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from services.connection_analyzer import scoring
from services.connection_analyzer.models import (
    BusinessInfo,
    ScoredCandidate,
    SkillMatch,
    StrategyKind,
    UserInfo,
)
from shared.database.neo4j import Neo4jClient
from shared.logging import get_logger


logger = get_logger(__name__)


# Candidate projection shared by every strategy
_CANDIDATE_RETURN = """
    {
        id: b2.id, name: b2.name, businessType: b2.businessType,
        businessCategory: b2.businessCategory, businessPhase: b2.businessPhase,
        description: b2.description, website: b2.website
    } AS business,
    {id: u2.id, firstName: u2.firstName, lastName: u2.lastName, email: u2.email} AS user
"""


def _business_info(data: dict[str, Any]) -> BusinessInfo:
    return BusinessInfo(
        id=data["id"],
        name=data.get("name"),
        business_type=data.get("businessType"),
        business_category=data.get("businessCategory"),
        business_phase=data.get("businessPhase"),
        description=data.get("description"),
        website=data.get("website"),
    )


def _user_info(data: dict[str, Any]) -> UserInfo:
    return UserInfo(
        id=data["id"],
        first_name=data.get("firstName"),
        last_name=data.get("lastName"),
        email=data.get("email"),
    )


class RecommendationStrategy(ABC):
    """
    Base class for a partnership strategy.

    Args:
        graph: Connected graph client
        max_results: Maximum candidates returned
    """

    kind: ClassVar[StrategyKind]
    query: ClassVar[str]

    def __init__(self, graph: Neo4jClient, max_results: int = 20) -> None:
        self._graph = graph
        self._max_results = max_results

    async def recommend(self, business_id: int) -> list[ScoredCandidate]:
        """
        Ranked candidates for a requester business.

        Args:
            business_id: Requester business id

        Returns:
            Candidates ordered by score descending, then business id
        """
        records = await self._graph.run_query(self.query, {"businessId": business_id})

        candidates = []
        for record in records:
            candidate = self.score(record)
            if candidate is not None:
                candidates.append(candidate)

        ranked = scoring.rank_candidates(candidates, self._max_results)
        logger.debug(
            "strategy_completed",
            strategy=self.kind.value,
            business_id=business_id,
            rows=len(records),
            qualified=len(candidates),
            returned=len(ranked),
        )
        return ranked

    @abstractmethod
    def score(self, record: dict[str, Any]) -> ScoredCandidate | None:
        """Turn one feature row into a candidate, or None if it does not qualify."""


class ComplementaryStrategy(RecommendationStrategy):
    """Same business type with a different category, or the reverse."""

    kind = StrategyKind.COMPLEMENTARY

    query = f"""
    MATCH (u1:User)-[:OPERATES]->(b1:Business {{id: $businessId}})
    MATCH (u2:User)-[:OPERATES]->(b2:Business)
    WHERE b2.id <> b1.id AND u2.id <> u1.id
      AND (
        (b1.businessType = b2.businessType AND b1.businessCategory <> b2.businessCategory)
        OR (b1.businessType <> b2.businessType AND b1.businessCategory = b2.businessCategory)
      )
    OPTIONAL MATCH (b1)-[conn:CONNECTS_TO]-(b2)
    WITH b1, b2, u2, collect(conn.status) AS connectionStatuses
    RETURN b1.businessType AS requesterType,
           b1.businessCategory AS requesterCategory,
           {_CANDIDATE_RETURN},
           connectionStatuses
    """

    def score(self, record: dict[str, Any]) -> ScoredCandidate | None:
        business = _business_info(record["business"])
        requester_type = record.get("requesterType")
        requester_category = record.get("requesterCategory")

        if not scoring.is_complementary(
            requester_type, requester_category, business.business_type, business.business_category
        ):
            return None

        value = scoring.complementary_score(
            requester_type, requester_category, business.business_type, business.business_category
        )
        status = scoring.pick_connection_status(record.get("connectionStatuses") or [])

        return ScoredCandidate(
            type=self.kind.candidate_type,
            score=value,
            reason=f"Complementary business types: {requester_type} + {business.business_type}",
            business=business,
            user=_user_info(record["user"]),
            compatibility_factors=[
                f"Business type compatibility: {scoring.percent(value)}",
                scoring.connection_status_factor(status),
            ],
        )


class AllianceStrategy(RecommendationStrategy):
    """Operators sharing skills with the requester's operator."""

    kind = StrategyKind.ALLIANCE

    query = f"""
    MATCH (u1:User)-[:OPERATES]->(b1:Business {{id: $businessId}})
    MATCH (u1)-[:HAS_SKILL]->(s:Skill)<-[hs:HAS_SKILL]-(u2:User)-[:OPERATES]->(b2:Business)
    WHERE b2.id <> b1.id AND u2.id <> u1.id
    WITH b1, b2, u2,
         collect(DISTINCT {{id: s.id, name: s.name, category: s.category, proficiency: hs.proficiencyLevel}}) AS sharedSkills
    OPTIONAL MATCH (b1)-[conn:CONNECTS_TO]-(b2)
    WITH b1, b2, u2, sharedSkills, collect(conn.status) AS connectionStatuses
    RETURN b1.businessPhase AS requesterPhase,
           b1.businessCategory AS requesterCategory,
           {_CANDIDATE_RETURN},
           sharedSkills,
           connectionStatuses
    """

    def score(self, record: dict[str, Any]) -> ScoredCandidate | None:
        business = _business_info(record["business"])
        shared = [
            SkillMatch(
                skill_id=s["id"],
                skill_name=s.get("name"),
                skill_category=s.get("category"),
                user_proficiency=s.get("proficiency"),
            )
            for s in record.get("sharedSkills") or []
            if s.get("id") is not None
        ]
        shared.sort(key=lambda s: s.skill_id)

        raw = scoring.alliance_score(
            len(shared),
            record.get("requesterPhase"),
            business.business_phase,
            record.get("requesterCategory"),
            business.business_category,
        )
        if not scoring.alliance_qualifies(raw):
            return None

        value = round(min(1.0, raw), 4)
        status = scoring.pick_connection_status(record.get("connectionStatuses") or [])

        return ScoredCandidate(
            type=self.kind.candidate_type,
            score=value,
            reason=f"Shared {len(shared)} skills with potential for project collaboration",
            business=business,
            user=_user_info(record["user"]),
            skills=shared,
            compatibility_factors=[
                f"Shared skills: {len(shared)}",
                f"Alliance potential: {scoring.percent(value)}",
                scoring.connection_status_factor(status),
            ],
        )


class MastermindStrategy(RecommendationStrategy):
    """Operators bringing skill categories the requester's operator lacks."""

    kind = StrategyKind.MASTERMIND

    query = f"""
    MATCH (u1:User)-[:OPERATES]->(b1:Business {{id: $businessId}})
    OPTIONAL MATCH (u1)-[:HAS_SKILL]->(rs:Skill)
    WITH u1, b1, [x IN collect(DISTINCT rs) | {{id: x.id, category: x.category}}] AS requesterSkills
    MATCH (u2:User)-[:OPERATES]->(b2:Business)
    WHERE b2.id <> b1.id AND u2.id <> u1.id
    MATCH (u2)-[:HAS_SKILL]->(ps:Skill)
    WITH u1, b1, requesterSkills, u2, b2,
         [x IN collect(DISTINCT ps) | {{id: x.id, category: x.category}}] AS partnerSkills
    OPTIONAL MATCH (b1)-[conn:CONNECTS_TO]-(b2)
    WITH b1, b2, u2, requesterSkills, partnerSkills, collect(conn.status) AS connectionStatuses
    RETURN b1.businessPhase AS requesterPhase,
           {_CANDIDATE_RETURN},
           requesterSkills,
           partnerSkills,
           connectionStatuses
    """

    def score(self, record: dict[str, Any]) -> ScoredCandidate | None:
        business = _business_info(record["business"])
        requester_categories = [s.get("category") for s in record.get("requesterSkills") or []]
        partner_categories = [s.get("category") for s in record.get("partnerSkills") or []]

        partner_distinct = scoring.distinct_category_count(partner_categories, requester_categories)
        if partner_distinct == 0:
            return None
        requester_distinct = scoring.distinct_category_count(requester_categories, partner_categories)

        requester_phase = record.get("requesterPhase")
        phase = scoring.phase_compatibility(requester_phase, business.business_phase)
        skill = scoring.skill_complementarity(partner_distinct, requester_distinct)
        if not scoring.mastermind_qualifies(phase, skill):
            return None

        value = round(scoring.mastermind_score(phase, skill), 4)
        status = scoring.pick_connection_status(record.get("connectionStatuses") or [])

        return ScoredCandidate(
            type=self.kind.candidate_type,
            score=value,
            reason=(
                f"Complementary business phase ({requester_phase} -> {business.business_phase}) "
                "and skill sets"
            ),
            business=business,
            user=_user_info(record["user"]),
            compatibility_factors=[
                f"Phase compatibility: {scoring.percent(phase)}",
                f"Skill complementarity: {scoring.percent(skill)}",
                scoring.connection_status_factor(status),
            ],
        )


STRATEGY_TYPES: dict[StrategyKind, type[RecommendationStrategy]] = {
    StrategyKind.COMPLEMENTARY: ComplementaryStrategy,
    StrategyKind.ALLIANCE: AllianceStrategy,
    StrategyKind.MASTERMIND: MastermindStrategy,
}
