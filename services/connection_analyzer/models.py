"""
Recommendation Models
=====================

Pydantic models for recommendation results and connection analysis.

Version: 0.1.0
"""

from enum import Enum

from pydantic import BaseModel, Field


class StrategyKind(str, Enum):
    """Recommendation strategy."""

    COMPLEMENTARY = "complementary"
    ALLIANCE = "alliance"
    MASTERMIND = "mastermind"

    @property
    def candidate_type(self) -> str:
        """Type label carried by each candidate."""
        return f"{self.name}_PARTNER"

    @property
    def list_type(self) -> str:
        """Type label carried by a result list."""
        return f"{self.name}_PARTNERS"


class RequesterKind(str, Enum):
    """How the requester identifier is interpreted."""

    BUSINESS = "business"
    USER = "user"


# =============================================================================
# Candidates
# =============================================================================


class BusinessInfo(BaseModel):
    """Candidate business summary."""

    id: int
    name: str | None = None
    business_type: str | None = None
    business_category: str | None = None
    business_phase: str | None = None
    description: str | None = None
    website: str | None = None


class UserInfo(BaseModel):
    """Candidate business operator summary."""

    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


class SkillMatch(BaseModel):
    """A skill shared between requester and candidate operators."""

    skill_id: int
    skill_name: str | None = None
    skill_category: str | None = None
    user_proficiency: str | None = None


class ScoredCandidate(BaseModel):
    """One ranked partnership recommendation."""

    type: str
    score: float = Field(..., ge=0.0, le=1.0)
    reason: str
    business: BusinessInfo
    user: UserInfo
    skills: list[SkillMatch] = Field(default_factory=list)
    compatibility_factors: list[str] = Field(default_factory=list)


# =============================================================================
# Responses
# =============================================================================


class RecommendationList(BaseModel):
    """Ranked candidates from one strategy."""

    type: str
    count: int
    recommendations: list[ScoredCandidate]

    @classmethod
    def for_kind(cls, kind: StrategyKind, recommendations: list[ScoredCandidate]) -> "RecommendationList":
        return cls(type=kind.list_type, count=len(recommendations), recommendations=recommendations)


class StrategyOutcome(RecommendationList):
    """
    Result of one strategy inside a combined request.

    A failed strategy has error set and no recommendations, which is
    distinct from a strategy that ran and matched nothing.
    """

    kind: StrategyKind
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class AllRecommendations(BaseModel):
    """Combined results of every strategy."""

    requester_id: int
    by: RequesterKind
    business_id: int
    recommendations: dict[str, StrategyOutcome]


class ConnectionAnalysis(BaseModel):
    """Aggregate connection, skill and project summary for one business."""

    business_id: int
    business_name: str | None = None
    business_type: str | None = None
    business_phase: str | None = None
    total_connections: int = 0
    active_connections: int = 0
    total_skills: int = 0
    tech_skills: int = 0
    business_skills: int = 0
    total_projects: int = 0
    active_projects: int = 0
    connection_strength: str
    skill_diversity: str


class ConnectionAnalysisResponse(BaseModel):
    """Connection analysis for a requester."""

    requester_id: int
    by: RequesterKind
    analysis: ConnectionAnalysis
