"""
Document Review API Endpoints
Upload a grant PDF and get a heuristic NIH-criteria review.
"""
import logging

from fastapi import APIRouter, File, UploadFile

from backend.api.deps import CurrentUser
from backend.core.config import settings
from backend.core.exceptions import ValidationError
from backend.schemas.review import DocumentReviewResponse
from backend.services.document_review import analyze_document, extract_document_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/review", tags=["Review"])


@router.post("/analyze", response_model=DocumentReviewResponse)
async def analyze(
    current_user: CurrentUser,
    file: UploadFile = File(..., description="Grant application PDF"),
) -> DocumentReviewResponse:
    """
    Review an uploaded grant document.

    Scores the seven NIH review sections from keyword and quality signals
    and returns strengths, weaknesses and the top priorities to fix.
    """
    content = await file.read()
    if not content:
        raise ValidationError("No file provided")
    if len(content) > settings.max_upload_size_mb * 1024 * 1024:
        raise ValidationError(f"File exceeds {settings.max_upload_size_mb} MB limit")

    text = extract_document_text(content)
    if not text.strip():
        raise ValidationError("Could not extract text from document")

    analysis = analyze_document(text)
    logger.info(
        f"Reviewed {file.filename}: score {analysis['overall_score']} ({analysis['fundability_rating']})"
    )
    return DocumentReviewResponse(file_name=file.filename or "document", **analysis)
