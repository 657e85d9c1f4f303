"""
Sections API Endpoints
Section content, compliance, aims architecture scoring and version history.
"""
import logging
from uuid import UUID

from fastapi import APIRouter, status
from sqlalchemy import select

from backend.api.deps import AsyncSessionDep, CurrentUser
from backend.api.utils.auth import get_owned_section
from backend.models import SectionVersion
from backend.schemas.applications import (
    SectionResponse,
    SectionUpdate,
    SectionVersionCreate,
    SectionVersionResponse,
)
from backend.schemas.architecture import (
    ArchitectureData,
    ArchitectureResponse,
    ScoreResponse,
)
from backend.schemas.compliance import ComplianceCheckRequest, ComplianceResult
from backend.services.applications import (
    apply_section_content,
    restore_version,
    section_gate_inputs,
    snapshot_version,
)
from backend.services.compliance import validate_section
from backend.services.dependency_graph import analyze_dependencies, create_dependency_map
from backend.services.risk_engine import analyze_risks
from backend.services.structural_scoring import calculate_structural_score

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sections", tags=["Sections"])


# =============================================================================
# Compliance
# =============================================================================


@router.post("/compliance/check", response_model=ComplianceResult)
async def check_compliance(
    request: ComplianceCheckRequest,
    current_user: CurrentUser,
) -> ComplianceResult:
    """Check text that has not been saved to a section."""
    return validate_section(request.content, request.section_type)


@router.post("/{section_id}/compliance", response_model=ComplianceResult)
async def section_compliance(
    section_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ComplianceResult:
    """Page limit, heading, placeholder, citation and language checks for a section."""
    section = await get_owned_section(db, section_id, current_user)
    return validate_section(section.content or "", section.type)


# =============================================================================
# Content
# =============================================================================


@router.get("/{section_id}", response_model=SectionResponse)
async def get_section(
    section_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> SectionResponse:
    section = await get_owned_section(db, section_id, current_user)
    return SectionResponse.model_validate(section)


@router.put("/{section_id}", response_model=SectionResponse)
async def update_section(
    section_id: UUID,
    data: SectionUpdate,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> SectionResponse:
    """
    Save section content.

    Page count, validity (page limit and required headings) and
    completeness are recomputed on every save.
    """
    section = await get_owned_section(db, section_id, current_user)
    apply_section_content(section, data.content)

    if data.save_version:
        db.add(snapshot_version(section, data.version_source, data.change_description))

    await db.flush()
    return SectionResponse.model_validate(section)


# =============================================================================
# Architecture
# =============================================================================


def _architecture_response(section) -> ArchitectureResponse:
    architecture, score, risk, dependency_map = section_gate_inputs(section)
    return ArchitectureResponse(
        section_id=str(section.id),
        architecture=architecture,
        score=score,
        risk=risk,
        dependency_map=dependency_map,
    )


@router.get("/{section_id}/architecture", response_model=ArchitectureResponse)
async def get_architecture(
    section_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ArchitectureResponse:
    """Stored architecture with its last score, risk and dependency map."""
    section = await get_owned_section(db, section_id, current_user)
    return _architecture_response(section)


@router.put("/{section_id}/architecture", response_model=ArchitectureResponse)
async def save_architecture(
    section_id: UUID,
    architecture: ArchitectureData,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ArchitectureResponse:
    """Replace the section's aims architecture. Scores are recalculated on demand."""
    section = await get_owned_section(db, section_id, current_user)
    section.architecture = architecture.model_dump(mode="json")

    await db.flush()
    return _architecture_response(section)


@router.post("/{section_id}/score", response_model=ScoreResponse)
async def score_architecture(
    section_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> ScoreResponse:
    """
    Score the architecture, infer aim dependencies and flag risks.

    All three results are persisted on the section for the export gate.
    A section without an architecture is scored as an empty one.
    """
    section = await get_owned_section(db, section_id, current_user)
    architecture = ArchitectureData.model_validate(section.architecture or {})
    score = calculate_structural_score(architecture)
    dependencies = analyze_dependencies(architecture)
    dependency_map = create_dependency_map(dependencies)
    risk = analyze_risks(architecture, dependency_map, section.content)

    section.score = score.model_dump(mode="json")
    section.dependency_map = dependency_map.model_dump(mode="json")
    section.risk = risk.model_dump(mode="json")
    await db.flush()

    recommendations = list(dependencies.recommendations)
    for flag in risk.flags:
        if flag.recommendation and flag.recommendation not in recommendations:
            recommendations.append(flag.recommendation)

    logger.info(
        f"Scored section {section.id}: {score.structural_score} ({score.label}), risk {risk.overall_risk}"
    )
    return ScoreResponse(
        score=score,
        dependencies=dependencies,
        risk=risk,
        recommendations=recommendations,
    )


# =============================================================================
# Versions
# =============================================================================


@router.get("/{section_id}/versions", response_model=list[SectionVersionResponse])
async def list_versions(
    section_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> list[SectionVersionResponse]:
    """Version history, newest first."""
    section = await get_owned_section(db, section_id, current_user)
    result = await db.execute(
        select(SectionVersion)
        .where(SectionVersion.section_id == section.id)
        .order_by(SectionVersion.created_at.desc())
    )
    return [SectionVersionResponse.model_validate(v) for v in result.scalars().all()]


@router.post(
    "/{section_id}/versions",
    response_model=SectionVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_version(
    section_id: UUID,
    data: SectionVersionCreate,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> SectionVersionResponse:
    """Store a version without changing the section's current content."""
    section = await get_owned_section(db, section_id, current_user)
    version = snapshot_version(section, data.source, data.change_description, content=data.content)
    db.add(version)
    await db.flush()
    return SectionVersionResponse.model_validate(version)


@router.post("/{section_id}/versions/{version_id}/restore", response_model=SectionResponse)
async def restore_section_version(
    section_id: UUID,
    version_id: UUID,
    db: AsyncSessionDep,
    current_user: CurrentUser,
) -> SectionResponse:
    """Make a stored version the section's current content."""
    section = await get_owned_section(db, section_id, current_user)
    await restore_version(db, section, version_id)
    await db.flush()
    return SectionResponse.model_validate(section)
