"""
Grant Builder API Endpoints
Guided gap statement, hypothesis and specific aims construction.
"""
from typing import Union

from fastapi import APIRouter

from backend.api.deps import CurrentUser
from backend.schemas.grant_builder import (
    AimsResult,
    AimsValidationResult,
    GapStatementResult,
    GrantBuilderInfoResponse,
    GrantBuilderRequest,
    HypothesisResult,
)
from backend.services.grant_builder import (
    BUILDER_MODULES,
    FUNDING_MECHANISMS,
    grant_builder_service,
)

router = APIRouter(prefix="/api/grant-builder", tags=["Grant Builder"])

BuilderResult = Union[GapStatementResult, HypothesisResult, AimsResult, AimsValidationResult]


@router.get("", response_model=GrantBuilderInfoResponse)
async def builder_info() -> GrantBuilderInfoResponse:
    """Builder modules and the funding mechanisms they target."""
    return GrantBuilderInfoResponse(modules=BUILDER_MODULES, funding_mechanisms=FUNDING_MECHANISMS)


@router.post("", response_model=BuilderResult)
async def generate(
    request: GrantBuilderRequest,
    current_user: CurrentUser,
) -> BuilderResult:
    """
    Run one builder module.

    - **gap_statement**: gap statement, impact paragraph and refined title
    - **hypothesis**: central hypothesis with mechanistic and clinical framing
    - **aims**: aim scaffolds for the hypothesis
    - **validate_aims**: issues, warnings and a coherence score for drafted aims
    """
    return await grant_builder_service.generate(request.type, request.data, request.use_ai)
