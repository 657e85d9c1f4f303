"""
Letters API Endpoints
Letters of support, consultant commitment and vendor commitment.
"""
import logging

from fastapi import APIRouter

from backend.api.deps import CurrentUser
from backend.schemas.letters import LetterInfoResponse, LetterRequest, LetterResponse
from backend.services.letters import LETTER_REQUIRED_FIELDS, LETTER_TYPES, generate_letter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/letters", tags=["Letters"])


@router.get("", response_model=LetterInfoResponse)
async def letter_info() -> LetterInfoResponse:
    return LetterInfoResponse(letter_types=LETTER_TYPES, required_fields=LETTER_REQUIRED_FIELDS)


@router.post("", response_model=LetterResponse)
async def create_letter(
    request: LetterRequest,
    current_user: CurrentUser,
) -> LetterResponse:
    """Draft a letter from its template, dated today."""
    response = await generate_letter(request)
    logger.info(f"Generated {request.type} letter for user {current_user.id}")
    return response
