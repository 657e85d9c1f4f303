"""
Regulatory API Endpoints
Human Subjects and Vertebrate Animals checklists.
"""
import logging

from fastapi import APIRouter

from backend.api.deps import CurrentUser
from backend.schemas.regulatory import (
    HumanSubjectsData,
    RegulatoryOptions,
    RegulatoryReview,
    VertebrateAnimalsData,
)
from backend.services.regulatory import (
    EXEMPTION_CATEGORIES,
    VULNERABLE_POPULATIONS,
    check_human_subjects,
    check_vertebrate_animals,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/regulatory", tags=["Regulatory"])


@router.get("/options", response_model=RegulatoryOptions)
async def regulatory_options() -> RegulatoryOptions:
    return RegulatoryOptions(
        exemption_categories=EXEMPTION_CATEGORIES,
        vulnerable_populations=VULNERABLE_POPULATIONS,
    )


@router.post("/human-subjects", response_model=RegulatoryReview)
async def human_subjects(
    data: HumanSubjectsData,
    current_user: CurrentUser,
) -> RegulatoryReview:
    """Checklist progress and findings for the Human Subjects section."""
    return check_human_subjects(data)


@router.post("/vertebrate-animals", response_model=RegulatoryReview)
async def vertebrate_animals(
    data: VertebrateAnimalsData,
    current_user: CurrentUser,
) -> RegulatoryReview:
    """Checklist progress and findings for the Vertebrate Animals section."""
    review = check_vertebrate_animals(data)
    logger.info(f"Vertebrate animals checklist for user {current_user.id}: {review.progress_percent}%")
    return review
