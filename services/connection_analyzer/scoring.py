"""
Recommendation Scoring
======================

Pure scoring, qualification and ranking rules for the partnership
strategies, plus the qualitative labels of the connection analysis.

Graph queries only extract candidate features; every number that ends
up in a recommendation is computed here.

Version: 0.1.0
"""

from collections.abc import Iterable, Sequence

from services.connection_analyzer.models import ScoredCandidate


NOT_CONNECTED = "not_connected"

# Highest priority first
CONNECTION_STATUS_PRIORITY: tuple[str, ...] = ("active", "pending", "inactive", "rejected")

# =============================================================================
# Complementary
# =============================================================================

COMPLEMENTARY_TYPE_MATCH = 0.9
COMPLEMENTARY_CATEGORY_MATCH = 0.8
COMPLEMENTARY_FALLBACK = 0.7


def _same(a: str | None, b: str | None) -> bool:
    # Missing values never match, as in Cypher equality
    return a is not None and b is not None and a == b


def _differ(a: str | None, b: str | None) -> bool:
    return a is not None and b is not None and a != b


def is_complementary(
    requester_type: str | None,
    requester_category: str | None,
    candidate_type: str | None,
    candidate_category: str | None,
) -> bool:
    """Exactly one of business type and business category matches."""
    type_match = _same(requester_type, candidate_type) and _differ(requester_category, candidate_category)
    category_match = _same(requester_category, candidate_category) and _differ(requester_type, candidate_type)
    return type_match or category_match


def complementary_score(
    requester_type: str | None,
    requester_category: str | None,
    candidate_type: str | None,
    candidate_category: str | None,
) -> float:
    """
    Score a complementary pair.

    Returns:
        0.9 when types match and categories differ, 0.8 when categories
        match and types differ, 0.7 for anything else
    """
    if _same(requester_type, candidate_type) and _differ(requester_category, candidate_category):
        return COMPLEMENTARY_TYPE_MATCH
    if _same(requester_category, candidate_category) and _differ(requester_type, candidate_type):
        return COMPLEMENTARY_CATEGORY_MATCH
    return COMPLEMENTARY_FALLBACK


# =============================================================================
# Alliance
# =============================================================================

ALLIANCE_PER_SHARED_SKILL = 0.4
ALLIANCE_MATCH_BONUS = 0.3
ALLIANCE_MISMATCH_BONUS = 0.1
ALLIANCE_THRESHOLD = 0.5


def alliance_score(
    shared_skills: int,
    requester_phase: str | None,
    candidate_phase: str | None,
    requester_category: str | None,
    candidate_category: str | None,
) -> float:
    """
    min(1, shared x 0.4) + (0.3 same phase else 0.1) + (0.3 same category else 0.1)

    The raw value can exceed 1; callers clamp it for reporting.
    """
    score = min(1.0, shared_skills * ALLIANCE_PER_SHARED_SKILL)
    score += ALLIANCE_MATCH_BONUS if _same(requester_phase, candidate_phase) else ALLIANCE_MISMATCH_BONUS
    score += ALLIANCE_MATCH_BONUS if _same(requester_category, candidate_category) else ALLIANCE_MISMATCH_BONUS
    return score


def alliance_qualifies(score: float) -> bool:
    return score > ALLIANCE_THRESHOLD


# =============================================================================
# Mastermind
# =============================================================================

# requester phase -> (candidate phases, compatibility)
PHASE_COMPATIBILITY: dict[str, tuple[frozenset[str], float]] = {
    "Startup": (frozenset({"Growth", "Mature"}), 0.9),
    "Growth": (frozenset({"Startup", "Mature"}), 0.8),
    "Mature": (frozenset({"Growth", "Exit"}), 0.7),
}
PHASE_DEFAULT = 0.5

PARTNER_DISTINCT_WEIGHT = 0.3
REQUESTER_DISTINCT_WEIGHT = 0.2
MASTERMIND_PHASE_WEIGHT = 0.6
MASTERMIND_SKILL_WEIGHT = 0.4
MASTERMIND_PHASE_GATE = 0.6
MASTERMIND_SKILL_GATE = 0.3
MASTERMIND_THRESHOLD = 0.5


def phase_compatibility(requester_phase: str | None, candidate_phase: str | None) -> float:
    """Lifecycle adjacency from the requester's phase to the candidate's."""
    entry = PHASE_COMPATIBILITY.get(requester_phase or "")
    if entry is not None and candidate_phase in entry[0]:
        return entry[1]
    return PHASE_DEFAULT


def distinct_category_count(skill_categories: Iterable[str | None], other_categories: Iterable[str | None]) -> int:
    """Number of skills whose category is absent from the other side."""
    other = {c for c in other_categories if c is not None}
    return sum(1 for c in skill_categories if c is not None and c not in other)


def skill_complementarity(partner_distinct: int, requester_distinct: int) -> float:
    return min(
        1.0,
        partner_distinct * PARTNER_DISTINCT_WEIGHT + requester_distinct * REQUESTER_DISTINCT_WEIGHT,
    )


def mastermind_score(phase: float, skill: float) -> float:
    return phase * MASTERMIND_PHASE_WEIGHT + skill * MASTERMIND_SKILL_WEIGHT


def mastermind_qualifies(phase: float, skill: float) -> bool:
    if not (phase > MASTERMIND_PHASE_GATE or skill > MASTERMIND_SKILL_GATE):
        return False
    return mastermind_score(phase, skill) > MASTERMIND_THRESHOLD


# =============================================================================
# Shared
# =============================================================================


def pick_connection_status(statuses: Iterable[str | None]) -> str:
    """
    Status of the requester/candidate connection.

    With several CONNECTS_TO edges (either direction, any type) the most
    significant status wins.
    """
    present = [s for s in statuses if s]
    if not present:
        return NOT_CONNECTED
    for status in CONNECTION_STATUS_PRIORITY:
        if status in present:
            return status
    return sorted(present)[0]


def connection_status_factor(status: str) -> str:
    return f"Current connection status: {status}"


def percent(value: float) -> str:
    return f"{value * 100:.0f}%"


def rank_candidates(candidates: Sequence[ScoredCandidate], limit: int) -> list[ScoredCandidate]:
    """Score descending, then candidate business id ascending; capped at limit."""
    ordered = sorted(candidates, key=lambda c: (-c.score, c.business.id))
    return ordered[:limit]


# =============================================================================
# Connection Analysis Labels
# =============================================================================


def connection_strength(total: int, active: int) -> str:
    """None / Strong (> 0.8 active) / Moderate (> 0.5) / Weak."""
    if total == 0:
        return "None"
    ratio = active / total
    if ratio > 0.8:
        return "Strong"
    if ratio > 0.5:
        return "Moderate"
    return "Weak"


def skill_diversity(total: int, tech: int, business: int) -> str:
    """None / Specialized (either ratio > 0.6) / Balanced (both > 0.3) / Diverse."""
    if total == 0:
        return "None"
    tech_ratio = tech / total
    business_ratio = business / total
    if tech_ratio > 0.6 or business_ratio > 0.6:
        return "Specialized"
    if tech_ratio > 0.3 and business_ratio > 0.3:
        return "Balanced"
    return "Diverse"
