"""
Resubmission API Endpoints
Summary statement parsing, audit, response strategy, section rewrites,
Introduction to the Resubmission and projected re-scoring.
"""
import logging

from fastapi import APIRouter

from backend.api.deps import CurrentUser
from backend.schemas.resubmission import (
    AuditRequest,
    AuditResult,
    CoverLetter,
    CoverLetterRequest,
    ParsedSummary,
    ParseSummaryRequest,
    QualityCheckRequest,
    QualityCheckResult,
    ResponseStrategy,
    SectionRewrite,
    SectionRewriteRequest,
    StrategyRequest,
)
from backend.services.resubmission import resubmission_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/resubmission", tags=["Resubmission"])


@router.post("/parse", response_model=ParsedSummary)
async def parse_summary(
    request: ParseSummaryRequest,
    current_user: CurrentUser,
) -> ParsedSummary:
    """Extract criterion scores and reviewer critiques from a summary statement."""
    parsed = await resubmission_service.parse_summary(request.summary_text)
    logger.info(f"User {current_user.id} parsed a summary statement ({len(parsed.critiques)} critiques)")
    return parsed


@router.post("/audit", response_model=AuditResult)
async def audit(
    request: AuditRequest,
    current_user: CurrentUser,
) -> AuditResult:
    return await resubmission_service.audit(request)


@router.post("/strategy", response_model=ResponseStrategy)
async def strategy(
    request: StrategyRequest,
    current_user: CurrentUser,
) -> ResponseStrategy:
    return await resubmission_service.strategy(request)


@router.post("/rewrite", response_model=SectionRewrite)
async def rewrite(
    request: SectionRewriteRequest,
    current_user: CurrentUser,
) -> SectionRewrite:
    return await resubmission_service.rewrite_section(request)


@router.post("/cover-letter", response_model=CoverLetter)
async def cover_letter(
    request: CoverLetterRequest,
    current_user: CurrentUser,
) -> CoverLetter:
    return await resubmission_service.cover_letter(request)


@router.post("/quality-check", response_model=QualityCheckResult)
async def quality_check(
    request: QualityCheckRequest,
    current_user: CurrentUser,
) -> QualityCheckResult:
    return await resubmission_service.quality_check(request)
