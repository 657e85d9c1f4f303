"""
Resubmission Schemas
Pydantic models for the summary statement to resubmission workflow.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


MIN_SUMMARY_LENGTH = 100


# =============================================================================
# Summary Statement
# =============================================================================

class CriterionScore(BaseModel):
    criterion: str
    score: Optional[float] = Field(None, ge=1, le=9)


class ReviewerCritique(BaseModel):
    """One critique point lifted from the summary statement."""
    id: str
    criterion: str = "approach"
    reviewer: str = "Reviewer 1"
    text: str = ""
    severity: Literal["must-address", "consider"] = "consider"


class ParsedSummary(BaseModel):
    overall_impact_score: Optional[float] = Field(None, ge=1, le=90)
    criterion_scores: List[CriterionScore] = Field(default_factory=list)
    critiques: List[ReviewerCritique] = Field(default_factory=list)
    resume_synopsis: str = ""


class ParseSummaryRequest(BaseModel):
    summary_text: str = Field(..., description="Pasted NIH summary statement")


# =============================================================================
# Audit
# =============================================================================

class AuditFinding(BaseModel):
    id: str
    category: str = "Approach"
    finding: str = ""
    recommendation: str = ""
    priority: Literal["critical", "important", "minor"] = "important"


class AuditResult(BaseModel):
    """Issues an independent reviewer would raise beyond the summary statement."""
    findings: List[AuditFinding] = Field(default_factory=list)
    preliminary_data_gaps: List[str] = Field(default_factory=list)
    suggested_new_data: List[str] = Field(default_factory=list)
    missed_opportunities: List[str] = Field(default_factory=list)


class AuditRequest(BaseModel):
    grant_text: str = Field(..., min_length=1)
    parsed_summary: ParsedSummary


# =============================================================================
# Strategy
# =============================================================================

class ResponseSuggestion(BaseModel):
    critique_id: str
    response: str = ""
    priority: Literal["critical", "important", "minor"] = "important"
    structural_changes: List[str] = Field(default_factory=list)
    page_estimate: float = Field(0, ge=0)


class ResponseStrategy(BaseModel):
    """Point-by-point plan; page figures assume a one-page introduction."""
    suggestions: List[ResponseSuggestion] = Field(default_factory=list)
    total_page_estimate: float = 0
    remaining_page_budget: float = 0


class StrategyRequest(BaseModel):
    parsed_summary: ParsedSummary
    audit_results: Optional[AuditResult] = None
    page_limit: int = Field(12, ge=1, description="Research Strategy page limit")


# =============================================================================
# Section Rewrite
# =============================================================================

class SectionRewriteRequest(BaseModel):
    section_name: str = Field(..., min_length=1)
    original_text: str = Field(..., min_length=1)
    critiques_to_address: List[str] = Field(..., min_length=1)
    response_strategy: Optional[ResponseStrategy] = None


class SectionRewrite(BaseModel):
    section_name: str
    original_text: str
    revised_text: str
    changes: List[str] = Field(default_factory=list)
    page_count: int = 0


# =============================================================================
# Introduction to the Resubmission
# =============================================================================

class CoverLetterRequest(BaseModel):
    parsed_summary: ParsedSummary
    response_strategy: ResponseStrategy
    section_rewrites: List[SectionRewrite] = Field(default_factory=list)


class CoverLetter(BaseModel):
    content: str
    word_count: int
    page_estimate: float
    within_limit: bool


# =============================================================================
# Quality Check
# =============================================================================

class ProjectedScore(BaseModel):
    criterion: str
    original_score: Optional[float] = None
    projected_score: Optional[float] = None
    delta: Optional[float] = None


class QualityChecklistItem(BaseModel):
    item: str
    completed: bool = False


class QualityCheckRequest(BaseModel):
    parsed_summary: ParsedSummary
    response_strategy: ResponseStrategy
    section_rewrites: List[SectionRewrite] = Field(default_factory=list)
    cover_letter: Optional[CoverLetter] = None


class QualityCheckResult(BaseModel):
    """Projected scores after revision (1-9, lower is better)."""
    scores: List[ProjectedScore] = Field(default_factory=list)
    overall_original: Optional[float] = None
    overall_projected: Optional[float] = None
    overall_delta: Optional[float] = None
    remaining_risks: List[str] = Field(default_factory=list)
    checklist: List[QualityChecklistItem] = Field(default_factory=list)


