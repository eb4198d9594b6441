"""
Connection Routes
=================

API endpoints for partnership recommendations and connection analysis.

Every endpoint takes a requester id and a `by` query parameter that
says whether the id names a business (default) or its operating user.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends, Query, Request

from services.connection_analyzer.engine import RecommendationEngine
from services.connection_analyzer.errors import InvalidIdentifierError
from services.connection_analyzer.models import (
    AllRecommendations,
    ConnectionAnalysisResponse,
    RecommendationList,
    RequesterKind,
    StrategyKind,
)
from shared.logging import get_logger


logger = get_logger(__name__)

router = APIRouter()

_MAX_ID = 2**63 - 1


def get_engine(request: Request) -> RecommendationEngine:
    """Dependency that provides the engine created at startup."""
    return request.app.state.engine


def parse_requester_id(raw: str) -> int:
    """
    Parse a path identifier.

    Raises:
        InvalidIdentifierError: If it is not a positive integer
    """
    value = raw.strip()
    if not (value.isascii() and value.isdigit()):
        raise InvalidIdentifierError(f"Invalid identifier: {raw!r}", details={"requester_id": raw})
    parsed = int(value)
    if parsed <= 0 or parsed > _MAX_ID:
        raise InvalidIdentifierError(f"Identifier out of range: {raw!r}", details={"requester_id": raw})
    return parsed


_BY = Query(default=RequesterKind.BUSINESS, description="Interpret the id as a business or a user id")


async def _strategy_response(
    engine: RecommendationEngine,
    requester_id: str,
    kind: StrategyKind,
    by: RequesterKind,
) -> RecommendationList:
    parsed = parse_requester_id(requester_id)
    recommendations = await engine.get_recommendations(parsed, kind, by)
    logger.info(
        "recommendations_served",
        strategy=kind.value,
        requester_id=parsed,
        by=by.value,
        count=len(recommendations),
    )
    return RecommendationList.for_kind(kind, recommendations)


@router.get("/complementary/{requester_id}", response_model=RecommendationList)
async def get_complementary_partners(
    requester_id: str,
    by: RequesterKind = _BY,
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationList:
    """
    Businesses sharing exactly one of business type and category.

    Scored 0.9 (same type, different category) or 0.8 (same category,
    different type).
    """
    return await _strategy_response(engine, requester_id, StrategyKind.COMPLEMENTARY, by)


@router.get("/alliance/{requester_id}", response_model=RecommendationList)
async def get_alliance_partners(
    requester_id: str,
    by: RequesterKind = _BY,
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationList:
    """Businesses whose operators share skills with the requester's operator."""
    return await _strategy_response(engine, requester_id, StrategyKind.ALLIANCE, by)


@router.get("/mastermind/{requester_id}", response_model=RecommendationList)
async def get_mastermind_partners(
    requester_id: str,
    by: RequesterKind = _BY,
    engine: RecommendationEngine = Depends(get_engine),
) -> RecommendationList:
    """Businesses with complementary lifecycle phase and skill categories."""
    return await _strategy_response(engine, requester_id, StrategyKind.MASTERMIND, by)


@router.get("/recommendations/{requester_id}", response_model=AllRecommendations)
async def get_all_recommendations(
    requester_id: str,
    by: RequesterKind = _BY,
    engine: RecommendationEngine = Depends(get_engine),
) -> AllRecommendations:
    """
    All three strategies, run concurrently.

    A strategy that failed reports an error instead of recommendations;
    the others are unaffected.
    """
    parsed = parse_requester_id(requester_id)
    business_id, outcomes = await engine.get_all_recommendations(parsed, by)

    return AllRecommendations(
        requester_id=parsed,
        by=by,
        business_id=business_id,
        recommendations={kind.value: outcome for kind, outcome in outcomes.items()},
    )


@router.get("/analysis/{requester_id}", response_model=ConnectionAnalysisResponse)
async def get_connection_analysis(
    requester_id: str,
    by: RequesterKind = _BY,
    engine: RecommendationEngine = Depends(get_engine),
) -> ConnectionAnalysisResponse:
    """Connection counts, skill mix and project counts with qualitative labels."""
    parsed = parse_requester_id(requester_id)
    analysis = await engine.get_connection_analysis(parsed, by)
    return ConnectionAnalysisResponse(requester_id=parsed, by=by, analysis=analysis)
