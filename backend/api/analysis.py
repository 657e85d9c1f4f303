"""
Application Analysis API Endpoints
Feasibility and novelty-risk assessments of draft text.
"""
import logging

from fastapi import APIRouter

from backend.api.deps import CurrentUser
from backend.schemas.analysis import (
    FeasibilityRequest,
    FeasibilityResult,
    NoveltyRiskRequest,
    NoveltyRiskResult,
)
from backend.services.application_analysis import assess_feasibility, assess_novelty_risk

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analysis", tags=["Analysis"])


@router.post("/feasibility", response_model=FeasibilityResult)
async def feasibility(
    request: FeasibilityRequest,
    current_user: CurrentUser,
) -> FeasibilityResult:
    """Scope and feasibility read of the aims, strategy, timeline and budget."""
    result = await assess_feasibility(request)
    logger.info(f"Feasibility score {result.overall_feasibility_score} for user {current_user.id}")
    return result


@router.post("/novelty-risk", response_model=NoveltyRiskResult)
async def novelty_risk(
    request: NoveltyRiskRequest,
    current_user: CurrentUser,
) -> NoveltyRiskResult:
    return await assess_novelty_risk(request)
