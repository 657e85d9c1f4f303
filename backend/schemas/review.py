"""
Document Review Schemas
Heuristic NIH-criteria review of an uploaded grant document.
"""
from typing import List, Literal

from pydantic import BaseModel, Field


SectionStatus = Literal["excellent", "good", "needs_work", "missing"]


class ReviewSectionResult(BaseModel):
    """Score and findings for one review criterion."""
    name: str
    max_score: int
    score: int = Field(..., ge=0)
    status: SectionStatus
    findings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class DocumentReviewResponse(BaseModel):
    """Overall review of an uploaded document (score 0-100)."""
    file_name: str
    overall_score: int = Field(..., ge=0, le=100)
    fundability_rating: Literal["High", "Medium", "Low", "Needs Major Revision"]
    grant_type: str
    project_title: str
    sections: List[ReviewSectionResult]
    strengths_overall: List[str]
    weaknesses_overall: List[str]
    top_priorities: List[str]
