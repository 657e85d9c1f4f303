"""
AI Writing Schemas
Pydantic models for LLM critique, rewrite, reviewer simulation and justification.
"""
from typing import List, Optional

from pydantic import BaseModel, Field


DEFAULT_GRANT_TYPE = "NIH R01"


# =============================================================================
# Critique
# =============================================================================

class CritiqueSuggestion(BaseModel):
    """An actionable improvement from the reviewer."""
    category: str = "Other"
    issue: str = ""
    recommendation: str = ""
    priority: str = "Medium"


class SectionSpecificFeedback(BaseModel):
    """Feedback keyed by NIH review criterion."""
    significance: Optional[str] = None
    innovation: Optional[str] = None
    approach: Optional[str] = None
    investigators: Optional[str] = None
    environment: Optional[str] = None


class CritiqueResult(BaseModel):
    """NIH-style critique of one section (1 = exceptional, 9 = poor)."""
    score: float = Field(5, ge=1, le=10)
    score_label: str = "Good"
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    suggestions: List[CritiqueSuggestion] = Field(default_factory=list)
    section_specific_feedback: Optional[SectionSpecificFeedback] = None


class CritiqueRequest(BaseModel):
    """Request a critique of section text."""
    content: str = Field(..., min_length=1)
    section_type: str = Field("specific_aims", description="Section being critiqued")
    grant_type: str = DEFAULT_GRANT_TYPE


# =============================================================================
# Rewrite
# =============================================================================

class RewriteChange(BaseModel):
    """One change made during a rewrite."""
    type: str = "Clarity"
    description: str = ""


class RewriteResult(BaseModel):
    """Rewritten section text with a change log."""
    rewritten_content: str
    changes: List[RewriteChange] = Field(default_factory=list)
    improvement_summary: str = ""


class RewriteRequest(CritiqueRequest):
    """Request a rewrite of section text."""
    save_as_version_for: Optional[str] = Field(
        None, description="Section id to store the rewrite against as an AI-modified version"
    )


# =============================================================================
# Bulk Critique
# =============================================================================

class BulkDocument(BaseModel):
    """One section submitted for bulk critique."""
    section: str
    content: str = Field(..., min_length=1)


class BulkCritiqueRequest(BaseModel):
    """Critique several sections in parallel."""
    documents: List[BulkDocument] = Field(..., min_length=1)
    grant_type: str = "SBIR Phase I"


class SectionCritique(BaseModel):
    """Critique of a named section within a bulk run."""
    section: str
    critique: CritiqueResult


class BulkCritiqueResponse(BaseModel):
    """Bulk critique with aggregate score (NIH scale, lower is better)."""
    reviews: List[SectionCritique]
    overall_score: Optional[float] = None
    fundable: bool = False
    summary: str
    failed_sections: List[str] = Field(default_factory=list)


# =============================================================================
# Reviewer Simulation
# =============================================================================

class ReviewerSimulationRequest(BaseModel):
    """Simulate study section reviewers reading a section."""
    section_content: str = Field(..., min_length=1)
    architecture: Optional[dict] = None
    personas: List[str] = Field(default_factory=lambda: ["all"])


class ReviewerSimulation(BaseModel):
    """One persona's review."""
    persona: str
    expertise: str
    overall_impression: Optional[str] = None
    score: Optional[float] = None
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)
    must_address: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class ReviewerSimulationResponse(BaseModel):
    """Reviews from every requested persona."""
    simulations: List[ReviewerSimulation]
    personas_used: List[str]


class ReviewerPersona(BaseModel):
    """A simulated study section reviewer."""
    name: str
    expertise: str
    style: str
    focus: List[str]
