"""
AI Critique API Endpoints
LLM critique, rewrite, bulk critique and reviewer simulation for grant sections.
"""
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter

from backend.api.deps import AsyncSessionDep, CurrentUser
from backend.api.utils.auth import get_owned_section
from backend.core.exceptions import ValidationError
from backend.schemas.ai_writing import (
    BulkCritiqueRequest,
    BulkCritiqueResponse,
    CritiqueRequest,
    CritiqueResult,
    ReviewerPersona,
    ReviewerSimulationRequest,
    ReviewerSimulationResponse,
    RewriteRequest,
    RewriteResult,
)
from backend.services.ai_writing import REVIEWER_PERSONAS, ai_writing_service
from backend.services.applications import snapshot_version

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai-critique", tags=["AI Critique"])


@router.post("", response_model=CritiqueResult)
async def critique(
    request: CritiqueRequest,
    current_user: CurrentUser,
) -> CritiqueResult:
    """
    NIH-style critique of section text.

    When the model is unavailable a neutral placeholder critique is
    returned instead of an error.
    """
    return await ai_writing_service.generate_critique(
        request.content,
        request.section_type,
        request.grant_type,
    )


@router.post("/rewrite", response_model=RewriteResult)
async def rewrite(
    request: RewriteRequest,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> RewriteResult:
    """
    Rewrite section text for competitiveness.

    With ``save_as_version_for`` set, the rewrite is stored against that
    section as an AI-modified version. The section content itself is
    left unchanged.
    """
    section = None
    if request.save_as_version_for:
        try:
            section_id = UUID(request.save_as_version_for)
        except ValueError as e:
            raise ValidationError("save_as_version_for must be a section id") from e
        section = await get_owned_section(db, section_id, current_user)

    result = await ai_writing_service.generate_rewrite(
        request.content,
        request.section_type,
        request.grant_type,
    )

    if section is not None and result.rewritten_content != request.content:
        db.add(
            snapshot_version(
                section,
                source="ai-modified",
                change_description=result.improvement_summary or "AI rewrite",
                content=result.rewritten_content,
            )
        )
        await db.flush()
        logger.info(f"Stored AI rewrite as version of section {section.id}")

    return result


@router.post("/bulk", response_model=BulkCritiqueResponse)
async def bulk_critique(
    request: BulkCritiqueRequest,
    current_user: CurrentUser,
) -> BulkCritiqueResponse:
    """Critique several sections in parallel and aggregate the scores."""
    return await ai_writing_service.bulk_critique(request.documents, request.grant_type)


@router.post("/reviewers", response_model=ReviewerSimulationResponse)
async def simulate_reviewers(
    request: ReviewerSimulationRequest,
    current_user: CurrentUser,
) -> ReviewerSimulationResponse:
    """Reviews of a section from each simulated study section persona."""
    return await ai_writing_service.simulate_reviewers(
        request.section_content,
        request.architecture,
        request.personas,
    )


@router.get("/personas", response_model=List[ReviewerPersona])
async def list_personas() -> List[ReviewerPersona]:
    return [ReviewerPersona(**persona) for persona in REVIEWER_PERSONAS]
